"""Executor - Sends one compiled request and captures the outcome.

The Executor owns the single transport call of a builder segment. Redirects
are followed here, hop by hop, so the builder's RedirectPolicy decides each
one instead of httpx's built-in redirect loop.

Transport failures never escape: they are recorded on the ExecutionResult
with a message naming the URI, and the reported status becomes 500.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any

import httpx

from fluent_rest.models import ClientConfig, ExecutionResult
from fluent_rest.redirect_policy import RedirectPolicy


logger = logging.getLogger(__name__)


# Failures of the HTTP exchange itself, as opposed to I/O on the connection
_PROTOCOL_ERRORS = (httpx.ProtocolError, httpx.UnsupportedProtocol, httpx.TooManyRedirects)


def build_client_kwargs(config: ClientConfig) -> dict[str, Any]:
    """Build kwargs for httpx.Client including TLS configuration.

    Args:
        config: Client configuration with optional TLS settings.

    Returns:
        Dictionary of kwargs for httpx.Client constructor.
    """
    kwargs: dict[str, Any] = {
        "timeout": config.timeout,
        "follow_redirects": False,
        "max_redirects": config.max_redirects,
    }

    # Handle client certificate (mTLS)
    if config.cert and config.key:
        if config.key_password:
            kwargs["cert"] = (config.cert, config.key, config.key_password)
        else:
            kwargs["cert"] = (config.cert, config.key)

    # Handle ciphers - requires creating a custom SSL context.
    # ClientConfig has already rejected cipher strings OpenSSL cannot use.
    if config.ciphers:
        ssl_context = ssl.create_default_context()
        ssl_context.set_ciphers(config.ciphers)

        if config.ca_bundle:
            ssl_context.load_verify_locations(config.ca_bundle)
        elif not config.verify_ssl:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE

        kwargs["verify"] = ssl_context
    elif config.ca_bundle:
        kwargs["verify"] = config.ca_bundle
    elif not config.verify_ssl:
        kwargs["verify"] = False

    return kwargs


class Executor:
    """Runs compiled requests through an httpx.Client.

    Usage:
        executor = Executor(client, policy)
        executor.execute(request, result)
        if result.failure is None:
            print(result.status_code)
    """

    def __init__(
        self,
        client: httpx.Client,
        policy: RedirectPolicy,
        max_redirects: int = 20,
    ) -> None:
        self._client = client
        self._policy = policy
        self._max_redirects = max_redirects

    def execute(self, request: httpx.Request, result: ExecutionResult) -> None:
        """Send request once and record the outcome on result.

        The response is left streaming; its body is read later by the
        ResponseMaterializer or released by the builder.
        """
        result.request = request
        logger.debug("Sending %s %s", request.method, request.url)

        try:
            response = self._send(request)
        except _PROTOCOL_ERRORS as e:
            message = f"Http Error while trying to connect to [{request.url}]"
            logger.error(message, exc_info=True)
            result.record_failure(message, e)
            return
        except httpx.RequestError as e:
            message = f"IO Error while trying to connect to [{request.url}]"
            logger.error(message, exc_info=True)
            result.record_failure(message, e)
            return

        result.response = response
        result.status_code = response.status_code

    def _send(self, request: httpx.Request) -> httpx.Response:
        """Send request and follow the redirects the policy allows.

        The policy hook decides each redirect inside httpx, so next_request is
        only set on responses that should be followed.
        """
        hooks = self._client.event_hooks["response"]
        hooks.append(self._policy.on_response)
        try:
            response = self._client.send(request, stream=True, follow_redirects=False)
            hops = 0

            while response.next_request is not None:
                if hops >= self._max_redirects:
                    response.close()
                    raise httpx.TooManyRedirects(
                        "Exceeded maximum allowed redirects.", request=request
                    )

                next_request = response.next_request
                logger.debug(
                    "Following %d redirect to %s", response.status_code, next_request.url
                )
                response.close()
                request = next_request
                response = self._client.send(request, stream=True, follow_redirects=False)
                hops += 1
        finally:
            hooks.remove(self._policy.on_response)

        return response
