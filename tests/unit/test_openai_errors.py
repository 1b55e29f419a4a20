"""Unit tests for OpenAI SDK exception mapping."""

import httpx
import pytest
from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    UnprocessableEntityError,
)

from essay_api.utils.errors import (
    AuthError,
    InvalidRequestError,
    RenderError,
    TransportError,
    UpstreamError,
)
from essay_api.utils.openai_errors import map_openai_exception

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def status_error(cls, status: int):
    return cls("boom", response=httpx.Response(status, request=REQUEST), body=None)


class TestMapOpenAIException:
    """Tests for map_openai_exception."""

    @pytest.mark.parametrize(
        ("exc", "expected_type", "status"),
        [
            (status_error(AuthenticationError, 401), AuthError, 401),
            (status_error(PermissionDeniedError, 403), AuthError, 401),
            (status_error(BadRequestError, 400), InvalidRequestError, 400),
            (status_error(NotFoundError, 404), InvalidRequestError, 400),
            (status_error(UnprocessableEntityError, 422), InvalidRequestError, 400),
            (status_error(RateLimitError, 429), UpstreamError, 502),
            (status_error(InternalServerError, 500), UpstreamError, 502),
            (APIConnectionError(request=REQUEST), TransportError, 502),
            (APITimeoutError(request=REQUEST), TransportError, 504),
            (APIError("stream error event", REQUEST, body=None), UpstreamError, 502),
        ],
    )
    def test_sdk_exceptions(self, exc, expected_type, status) -> None:
        mapped = map_openai_exception(exc)

        assert type(mapped) is expected_type
        assert mapped.status_code == status

    def test_invalid_request_keeps_upstream_status(self) -> None:
        mapped = map_openai_exception(status_error(NotFoundError, 404))

        assert mapped.upstream_status == 404

    def test_timeout_flagged(self) -> None:
        mapped = map_openai_exception(APITimeoutError(request=REQUEST))

        assert mapped.timed_out
        assert mapped.error_code == "TIMEOUT"

    def test_httpx_errors_are_transport_errors(self) -> None:
        assert isinstance(map_openai_exception(httpx.ReadError("reset")), TransportError)
        timeout = map_openai_exception(httpx.ReadTimeout("slow"))
        assert isinstance(timeout, TransportError)
        assert timeout.timed_out

    def test_service_errors_returned_unchanged(self) -> None:
        error = RenderError("ask", 0, "boom")
        assert map_openai_exception(error) is error

    def test_unknown_exception_becomes_upstream_error(self) -> None:
        mapped = map_openai_exception(ValueError("odd"))

        assert isinstance(mapped, UpstreamError)
        assert mapped.message == "odd"
