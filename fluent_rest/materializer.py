"""Response Materializer - Drains a streamed response into text, once."""

from __future__ import annotations

import logging

import httpx

from fluent_rest.models import ExecutionResult


logger = logging.getLogger(__name__)


def consume_body(result: ExecutionResult, locator: str | None = None) -> str:
    """Return the response body as text, reading the stream on first use.

    The text is cached on result and the stream is closed whether or not
    reading succeeds, so the transport is touched at most once. Read and
    decode failures are logged and leave the cached value ("" unless a
    previous call succeeded); they are never raised.
    """
    response = result.response
    if response is None or result.body_consumed:
        return result.body_text

    result.body_consumed = True
    try:
        response.read()
        result.body_text = response.text
    except (httpx.HTTPError, httpx.StreamError, OSError) as e:
        logger.error("Problem consuming entity as String: [%s] - %s", locator, e)
    except (ValueError, LookupError) as e:
        # Unknown or mismatched charset
        logger.error("Problem decoding entity as String: [%s] - %s", locator, e)
    finally:
        release(response)

    return result.body_text


def release(response: httpx.Response | None) -> None:
    """Close a response stream, ignoring a stream that is already closed."""
    if response is None or response.is_closed:
        return
    try:
        response.close()
    except (httpx.HTTPError, OSError):
        logger.debug("Error while closing response stream", exc_info=True)
