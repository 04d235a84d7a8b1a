"""Request Builder - Fluent configuration and single-shot execution.

A RequestBuilder accumulates headers, parameters, an optional body and a
redirect policy, then executes one verb and exposes status, body text and
failure through accessors. Every mutator and verb returns the builder so
calls can be chained:

    with RequestBuilder() as client:
        status = client.add_header("X-Trace", "1").get("api.local/items").get_status()
        text = client.consume_body()

Verb calls never raise for transport or URI problems; those are recorded
and reported through get_status(), get_exception() and get_message().
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

import httpx

from fluent_rest import materializer
from fluent_rest.compiler import CompileError, RequestCompiler
from fluent_rest.executor import Executor, build_client_kwargs
from fluent_rest.models import (
    STATUS_INTERNAL_ERROR,
    STATUS_NOT_EXECUTED,
    ClientConfig,
    ExecutionResult,
    HttpVerb,
    RequestState,
)
from fluent_rest.pairs import iter_pairs
from fluent_rest.redirect_policy import RedirectPolicy
from fluent_rest.uri_resolver import ResolutionError, parse_uri, resolve_uri


logger = logging.getLogger(__name__)


def _iter_names(names: tuple[Any, ...]) -> Iterable[Any]:
    for item in names:
        if item is None:
            continue
        if isinstance(item, (list, tuple, set, frozenset)):
            yield from item
        else:
            yield item


class RequestBuilder:
    """Chainable HTTP request builder over an httpx.Client.

    One builder runs one request lifecycle at a time: configure, execute a
    verb, read results, clear(). It is not safe to share between threads.

    Args:
        config: Transport settings. Defaults to ClientConfig().
        client: Use this client instead of creating one. The builder does not
                close a client it did not create.
        transport: httpx transport for the created client (e.g. MockTransport).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config or ClientConfig()

        if client is None:
            kwargs = build_client_kwargs(self._config)
            if transport is not None:
                kwargs["transport"] = transport
            self._client = httpx.Client(**kwargs)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

        self._policy = RedirectPolicy()
        self._compiler = RequestCompiler(self._client, self._config.default_accept)
        self._executor = Executor(self._client, self._policy, self._config.max_redirects)

        self._state = RequestState()
        self._result = ExecutionResult()
        self.add_headers(self._config.headers)

    def __enter__(self) -> RequestBuilder:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Headers and parameters
    # -------------------------------------------------------------------------

    def add_header(self, name: str | None, value: Any) -> RequestBuilder:
        """Add or replace a header. Ignored if name is empty or value is None.

        Names match case-insensitively; the spelling of the last call is kept.
        """
        if name and value is not None:
            self._drop_header(name)
            self._state.headers[name] = value
        return self

    def add_headers(self, *pairs: Any) -> RequestBuilder:
        """Add headers from mappings, "name=value" strings or lists of them."""
        for name, value in iter_pairs(pairs):
            self.add_header(name, value)
        return self

    def remove_headers(self, *names: Any) -> RequestBuilder:
        for name in _iter_names(names):
            self._drop_header(name)
        return self

    def _drop_header(self, name: Any) -> None:
        if name is None:
            return
        lowered = str(name).lower()
        for key in [key for key in self._state.headers if str(key).lower() == lowered]:
            del self._state.headers[key]

    def add_parameter(self, name: str | None, value: Any) -> RequestBuilder:
        """Add or replace a parameter. Ignored if name is empty or value is None."""
        if name and value is not None:
            self._state.parameters[name] = value
        return self

    def add_parameter_pair(self, pair: tuple[str, Any] | None) -> RequestBuilder:
        """Add a (name, value) parameter tuple."""
        if pair is not None:
            name, value = pair
            self.add_parameter(name, value)
        return self

    def add_parameters(self, *pairs: Any) -> RequestBuilder:
        """Add parameters from mappings, "name=value" strings or lists of them.

        A single string argument containing '&' is read as a query string:
        add_parameters("a=1&b=2") adds both. Tokens without '=' are dropped.
        """
        for name, value in iter_pairs(pairs, split_ampersand=True):
            self.add_parameter(name, value)
        return self

    def remove_parameters(self, *names: Any) -> RequestBuilder:
        for name in _iter_names(names):
            self._state.parameters.pop(name, None)
        return self

    @property
    def headers(self) -> Mapping[str, Any]:
        """Read-only view of the request headers."""
        return MappingProxyType(self._state.headers)

    @property
    def parameters(self) -> Mapping[str, Any]:
        """Read-only view of the request parameters."""
        return MappingProxyType(self._state.parameters)

    # -------------------------------------------------------------------------
    # Body, query string and redirects
    # -------------------------------------------------------------------------

    def set_body(self, body: Any) -> RequestBuilder:
        """Send body verbatim for POST/PUT instead of the form-encoded parameters."""
        self._state.body = body
        return self

    def set_query_string(self, query_string: str | None, append: bool = False) -> RequestBuilder:
        """Set a raw query string sent with every verb, after any parameters."""
        if query_string is not None:
            if append and self._state.query_string:
                self._state.query_string = f"{self._state.query_string}&{query_string}"
            else:
                self._state.query_string = query_string
        return self

    def set_redirect_ignore(self, status_code: int) -> RequestBuilder:
        """Never follow redirects answered with status_code."""
        self._policy.ignore(status_code)
        return self

    def set_redirect_ignore_global(self, ignore: bool) -> RequestBuilder:
        """Never follow any redirect while ignore is True."""
        self._policy.ignore_global = ignore
        return self

    def is_redirect_ignore_global(self) -> bool:
        return self._policy.ignore_global

    @property
    def redirect_ignore_statuses(self) -> frozenset[int]:
        return frozenset(self._policy.ignore_statuses)

    # -------------------------------------------------------------------------
    # Verbs
    # -------------------------------------------------------------------------

    def get(self, locator: str | None) -> RequestBuilder:
        return self._execute(HttpVerb.GET, locator)

    def post(self, locator: str | None) -> RequestBuilder:
        return self._execute(HttpVerb.POST, locator)

    def put(self, locator: str | None) -> RequestBuilder:
        return self._execute(HttpVerb.PUT, locator)

    def delete(self, locator: str | None) -> RequestBuilder:
        return self._execute(HttpVerb.DELETE, locator)

    def head(self, locator: str | None) -> RequestBuilder:
        return self._execute(HttpVerb.HEAD, locator)

    def trace(self, locator: str | None) -> RequestBuilder:
        return self._execute(HttpVerb.TRACE, locator)

    def options(self, locator: str | None) -> RequestBuilder:
        return self._execute(HttpVerb.OPTIONS, locator)

    def _execute(self, verb: HttpVerb, locator: str | None) -> RequestBuilder:
        """Resolve, compile and send one request, recording the outcome."""
        materializer.release(self._result.response)
        self._result = ExecutionResult()

        self._state.target_locator = locator
        self._state.resolved_uri = resolve_uri(locator)
        uri = self._state.resolved_uri

        # Nothing to send to; leave the result as "not executed"
        if not uri:
            return self

        try:
            parse_uri(uri)
        except ResolutionError as e:
            message = f"Could not build the desired URI: [{locator}]"
            logger.error(message, exc_info=True)
            self._result.record_failure(message, e)
            return self

        try:
            request = self._compiler.compile(verb, uri, self._state)
        except CompileError as e:
            message = f"Could not build the {verb.value} request for [{uri}]"
            logger.error(message, exc_info=True)
            self._result.record_failure(message, e)
            return self

        self._executor.execute(request, self._result)
        return self

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def get_status(self) -> int:
        """Status of the last request.

        500 if a failure was recorded, the response status if there is a
        response, otherwise -1.
        """
        if self._result.failure is not None:
            return STATUS_INTERNAL_ERROR
        if self._result.response is not None:
            return self._result.response.status_code
        return STATUS_NOT_EXECUTED

    def get_exception(self) -> BaseException | None:
        return self._result.failure

    def get_message(self) -> str | None:
        return self._result.message

    def consume_body(self) -> str:
        """Response body as text; read on the first call and cached after."""
        return materializer.consume_body(self._result, self._state.resolved_uri)

    def get_response(self) -> httpx.Response | None:
        return self._result.response

    def get_request(self) -> httpx.Request | None:
        return self._result.request

    def get_http_client(self) -> httpx.Client:
        return self._client

    def get_locator(self) -> str | None:
        """The locator passed to the last verb, as given."""
        return self._state.target_locator

    def get_uri(self) -> str | None:
        """The locator passed to the last verb, after resolution."""
        return self._state.resolved_uri

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """Reset the builder to its freshly constructed state.

        Closes an undrained response. Safe to call repeatedly, before any
        request, and never raises.
        """
        materializer.release(self._result.response)
        self._state = RequestState()
        self._result = ExecutionResult()
        self._policy.reset()
        self.add_headers(self._config.headers)

    def close(self) -> None:
        """Release the response and close the client if the builder created it."""
        try:
            materializer.release(self._result.response)
        finally:
            if self._owns_client:
                self._client.close()
