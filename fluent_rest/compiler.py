"""Request Compiler - Freezes builder state into an httpx.Request.

Headers are stamped as text, an Accept header is injected when the caller
set none, and parameters become either a form body (enclosing verbs) or a
query string (everything else).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from fluent_rest.models import DEFAULT_ACCEPT, HttpVerb, RequestState


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"


class CompileError(Exception):
    """Raised when builder state cannot be turned into a valid request."""


def to_query_string(pairs: Mapping[Any, Any] | None) -> str:
    """Join pairs as key=value with '&'.

    None keys are skipped and None values serialize as an empty string.
    Keys and values are not percent-encoded; see encode_query for the form
    that goes onto a request URL.
    """
    if not pairs:
        return ""
    return "&".join(
        f"{key}={'' if value is None else value}"
        for key, value in pairs.items()
        if key is not None
    )


def encode_query(pairs: Mapping[Any, Any] | None) -> str:
    """Percent-encode pairs into a query string safe to append to a URL.

    Same skipping rules as to_query_string, but '&', '=', '#' and spaces in
    keys or values are escaped so each pair arrives as a single parameter.
    """
    if not pairs:
        return ""
    params = httpx.QueryParams(
        {
            str(key): "" if value is None else str(value)
            for key, value in pairs.items()
            if key is not None
        }
    )
    return str(params)


def join_query(*parts: str) -> str:
    """Join query string fragments, skipping empty ones."""
    return "&".join(part for part in parts if part)


def append_query(uri: str, query: str) -> str:
    """Append a query string to a URI that may already carry one."""
    if not query:
        return uri
    base, _, fragment = uri.partition("#")
    separator = "&" if "?" in base else "?"
    if base.endswith(("?", "&")):
        separator = ""
    result = f"{base}{separator}{query}"
    return f"{result}#{fragment}" if fragment else result


def stamp_headers(headers: Mapping[str, Any], default_accept: str = DEFAULT_ACCEPT) -> dict[str, str]:
    """Coerce header values to text and inject Accept if it is missing."""
    stamped = {name: str(value) for name, value in headers.items() if value is not None}
    if "accept" not in {name.lower() for name in stamped}:
        stamped["Accept"] = default_accept
    return stamped


def encode_body(body: Any) -> bytes:
    """Encode an explicit body payload verbatim."""
    if isinstance(body, bytes):
        return body
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    return str(body).encode("utf-8")


class RequestCompiler:
    """Builds the wire request for one verb from a builder's RequestState."""

    def __init__(self, client: httpx.Client, default_accept: str = DEFAULT_ACCEPT) -> None:
        self._client = client
        self._default_accept = default_accept

    def compile(self, verb: HttpVerb, uri: str, state: RequestState) -> httpx.Request:
        """Compile state into a request for verb against the resolved uri.

        Raises:
            CompileError: If httpx rejects the URL or a header cannot be encoded.
        """
        headers = stamp_headers(state.headers, self._default_accept)

        content: bytes | None = None
        data: dict[str, str] | None = None

        if verb.encloses_body:
            query = state.query_string
            if state.body is not None:
                content = encode_body(state.body)
            elif state.parameters:
                data = {
                    str(name): "" if value is None else str(value)
                    for name, value in state.parameters.items()
                }
                # httpx encodes form fields as UTF-8
                if "content-type" not in {name.lower() for name in headers}:
                    headers["Content-Type"] = FORM_CONTENT_TYPE
        else:
            query = join_query(encode_query(state.parameters), state.query_string)

        url = append_query(uri, query)

        try:
            return self._client.build_request(
                method=verb.value,
                url=url,
                headers=headers,
                content=content,
                data=data,
            )
        except httpx.InvalidURL as e:
            raise CompileError(f"Invalid request URL '{url}': {e}") from e
        except UnicodeEncodeError as e:
            # httpx only accepts ASCII header names and values
            raise CompileError(
                f"Non-ASCII character {e.object[e.start:e.end]!r} in request headers"
            ) from e
