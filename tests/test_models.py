"""Tests for verbs, configuration and result models."""

import httpx
import pytest
from pydantic import ValidationError

from fluent_rest.models import (
    STATUS_INTERNAL_ERROR,
    STATUS_NOT_EXECUTED,
    ClientConfig,
    ExecutionResult,
    HttpVerb,
    RequestState,
)


class TestHttpVerb:
    """Only POST and PUT enclose a body."""

    @pytest.mark.parametrize("verb", [HttpVerb.POST, HttpVerb.PUT])
    def test_enclosing(self, verb: HttpVerb) -> None:
        assert verb.encloses_body is True

    @pytest.mark.parametrize(
        "verb",
        [HttpVerb.GET, HttpVerb.DELETE, HttpVerb.HEAD, HttpVerb.TRACE, HttpVerb.OPTIONS],
    )
    def test_non_enclosing(self, verb: HttpVerb) -> None:
        assert verb.encloses_body is False

    def test_seven_verbs(self) -> None:
        assert len(HttpVerb) == 7

    def test_value_is_method_name(self) -> None:
        assert HttpVerb("PUT") is HttpVerb.PUT
        assert HttpVerb.OPTIONS.value == "OPTIONS"


class TestSentinels:
    """Status sentinels never collide with real responses."""

    def test_not_executed_is_not_http_status(self) -> None:
        assert STATUS_NOT_EXECUTED < 100

    def test_internal_error(self) -> None:
        assert STATUS_INTERNAL_ERROR == 500


class TestClientConfig:
    """ClientConfig defaults and validation."""

    def test_defaults(self) -> None:
        config = ClientConfig()
        assert config.timeout == 30.0
        assert config.verify_ssl is True
        assert config.max_redirects == 20
        assert config.default_accept == "application/json"
        assert config.headers == {}

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(base_url="http://h")  # type: ignore[call-arg]

    def test_timeout_positive(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(timeout=0)

    def test_blank_default_accept_rejected(self) -> None:
        with pytest.raises(ValidationError, match="default_accept"):
            ClientConfig(default_accept="  ")

    def test_invalid_ciphers_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid cipher string"):
            ClientConfig(ciphers="NOT-A-REAL-CIPHER")

    def test_valid_ciphers_accepted(self) -> None:
        assert ClientConfig(ciphers="ECDHE+AESGCM").ciphers == "ECDHE+AESGCM"


class TestStateModels:
    """RequestState and ExecutionResult start empty."""

    def test_request_state_defaults(self) -> None:
        state = RequestState()
        assert state.headers == {}
        assert state.parameters == {}
        assert state.body is None
        assert state.query_string == ""
        assert state.target_locator is None
        assert state.resolved_uri is None

    def test_states_do_not_share_maps(self) -> None:
        first = RequestState()
        first.headers["a"] = "1"
        assert RequestState().headers == {}

    def test_execution_result_defaults(self) -> None:
        result = ExecutionResult()
        assert result.status_code == STATUS_NOT_EXECUTED
        assert result.response is None
        assert result.body_text == ""
        assert result.failure is None
        assert result.message is None

    def test_record_failure(self) -> None:
        error = httpx.ConnectError("refused")
        result = ExecutionResult(status_code=200, response=httpx.Response(200))
        result.record_failure("IO Error", error)
        assert result.failure is error
        assert result.message == "IO Error"
        assert result.status_code == STATUS_INTERNAL_ERROR
        assert result.response is None
