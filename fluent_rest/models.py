"""Internal data models for fluent-rest.

Configuration models use Pydantic v2. The per-builder request and result
state are plain dataclasses because they are mutated in place and hold
live httpx objects.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


# Reported by get_status() before any request has been executed.
STATUS_NOT_EXECUTED = -1

# Reported by get_status() whenever a failure has been recorded.
STATUS_INTERNAL_ERROR = int(httpx.codes.INTERNAL_SERVER_ERROR)

DEFAULT_ACCEPT = "application/json"


# =============================================================================
# HTTP Verbs
# =============================================================================


class HttpVerb(str, Enum):
    """The seven verbs a builder can execute.

    encloses_body is the only capability the compiler looks at: enclosing
    verbs carry parameters as a form body, the others as a query string.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"
    TRACE = "TRACE"
    OPTIONS = "OPTIONS"

    @property
    def encloses_body(self) -> bool:
        return self in _ENCLOSING_VERBS


_ENCLOSING_VERBS = frozenset({HttpVerb.POST, HttpVerb.PUT})


# =============================================================================
# Configuration
# =============================================================================


class ClientConfig(BaseModel):
    """Transport settings for the httpx.Client owned by a builder."""

    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    ca_bundle: str | None = Field(default=None, description="Path to a CA bundle")
    cert: str | None = Field(default=None, description="Client certificate path (mTLS)")
    key: str | None = Field(default=None, description="Client key path (mTLS)")
    key_password: str | None = Field(default=None, description="Password for the client key")
    ciphers: str | None = Field(default=None, description="OpenSSL cipher string")
    max_redirects: int = Field(default=20, ge=0, description="Maximum redirect hops per request")
    default_accept: str = Field(
        default=DEFAULT_ACCEPT,
        description="Accept header injected when the caller sets none",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers seeded into every builder (supports ${ENV_VAR} substitution)",
    )

    @field_validator("default_accept")
    @classmethod
    def check_default_accept(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("default_accept must not be empty")
        return v

    @field_validator("ciphers")
    @classmethod
    def check_ciphers(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                ssl.create_default_context().set_ciphers(v)
            except ssl.SSLError as e:
                raise ValueError(f"Invalid cipher string '{v}': {e}") from e
        return v


# =============================================================================
# Builder State
# =============================================================================


@dataclass
class RequestState:
    """Everything a builder accumulates before a verb is called.

    Redirect settings live on the builder's RedirectPolicy.
    """

    headers: dict[str, Any] = field(default_factory=dict)
    parameters: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    query_string: str = ""
    target_locator: str | None = None
    resolved_uri: str | None = None


@dataclass
class ExecutionResult:
    """Outcome of the one execution allowed between clear() calls.

    body_text uses "" for "not yet computed"; body_consumed records whether
    the response stream was already drained so an empty body is not read twice.
    """

    status_code: int = STATUS_NOT_EXECUTED
    request: httpx.Request | None = None
    response: httpx.Response | None = None
    body_text: str = ""
    body_consumed: bool = False
    failure: BaseException | None = None
    message: str | None = None

    def record_failure(self, message: str, failure: BaseException) -> None:
        self.failure = failure
        self.message = message
        self.status_code = STATUS_INTERNAL_ERROR
        self.response = None
