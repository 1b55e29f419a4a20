"""
Custom exception hierarchy for the Essay Question API.

Provides domain-specific exceptions for different error scenarios. Every error
carries the HTTP status it is surfaced with, so the exception handlers and the
in-band stream error frames can share one representation.
"""


class EssayServiceError(Exception):
    """
    Base exception for all Essay Question API errors.

    All application errors should inherit from this class.
    """

    status_code = 500

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """
        Initialize an Essay Question API error.

        Args:
            message: Human-readable error message
            error_code: Optional error code for categorization
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__


class ConfigurationError(EssayServiceError):
    """
    Raised when there's an error in application configuration.

    Typically thrown during startup when settings are invalid.
    """


class ValidationError(EssayServiceError):
    """
    Raised when input validation fails.

    Indicates that provided data doesn't meet requirements.
    """

    status_code = 400


class MissingCredentialError(ValidationError):
    """Raised when a request arrives without a usable TOKEN header."""

    def __init__(self) -> None:
        super().__init__("TOKEN header is required", error_code="MISSING_TOKEN")


class RequestSizeError(ValidationError):
    """Raised when request body exceeds size limit."""

    status_code = 413

    def __init__(self, actual_size: int, max_size: int) -> None:
        """
        Initialize a request size error.

        Args:
            actual_size: Actual size of request body in bytes
            max_size: Maximum allowed size in bytes
        """
        message = (
            f"Request body size ({actual_size} bytes) exceeds maximum allowed ({max_size} bytes)"
        )
        super().__init__(message, error_code="REQUEST_TOO_LARGE")
        self.actual_size = actual_size
        self.max_size = max_size


class TemplateError(EssayServiceError):
    """Base class for prompt template problems."""

    def __init__(self, message: str, template_name: str, error_code: str | None = None) -> None:
        super().__init__(message, error_code)
        self.template_name = template_name


class TemplateNotFoundError(TemplateError):
    """Raised when no template file exists for a logical template name."""

    def __init__(self, template_name: str) -> None:
        super().__init__(
            f"Prompt template not found: {template_name}",
            template_name=template_name,
            error_code="TEMPLATE_NOT_FOUND",
        )


class TemplateParseError(TemplateError):
    """Raised when a template file is not a valid template."""

    def __init__(self, template_name: str, detail: str) -> None:
        super().__init__(
            f"Prompt template {template_name} is invalid: {detail}",
            template_name=template_name,
            error_code="TEMPLATE_PARSE_ERROR",
        )
        self.detail = detail


class RenderError(TemplateError):
    """
    Raised when substituting a conversation turn into a template fails.

    Rendering is all-or-nothing: no prompt is sent when any turn fails.
    """

    status_code = 422

    def __init__(self, template_name: str, turn_index: int, detail: str) -> None:
        super().__init__(
            f"Failed to render prompt template {template_name} for message {turn_index}: {detail}",
            template_name=template_name,
            error_code="RENDER_ERROR",
        )
        self.turn_index = turn_index
        self.detail = detail


class ExternalServiceError(EssayServiceError):
    """
    Raised when the remote completion service encounters an error.

    Wraps errors from the OpenAI SDK with context.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        service_name: str = "openai",
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        """
        Initialize an external service error.

        Args:
            message: Human-readable error message
            service_name: Name of the external service
            status_code: Optional HTTP status code to surface to the caller
            error_code: Optional error code from the service
        """
        super().__init__(message, error_code)
        self.service_name = service_name
        if status_code is not None:
            self.status_code = status_code


class AuthError(ExternalServiceError):
    """Raised when the completion service rejects the caller's credential."""

    status_code = 401

    def __init__(self, message: str = "Credential rejected by completion service") -> None:
        super().__init__(message=message, error_code="AUTH_ERROR")


class InvalidRequestError(ExternalServiceError):
    """Raised when the completion service rejects the request parameters."""

    status_code = 400

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message=message, error_code="INVALID_REQUEST")
        self.upstream_status = upstream_status


class TransportError(ExternalServiceError):
    """Raised when the completion service cannot be reached or does not answer in time."""

    def __init__(self, message: str = "Connection failed", timed_out: bool = False) -> None:
        super().__init__(
            message=message,
            status_code=504 if timed_out else 502,
            error_code="TIMEOUT" if timed_out else "TRANSPORT_ERROR",
        )
        self.timed_out = timed_out


class UpstreamError(ExternalServiceError):
    """Raised when the completion service returns an application error, including mid-stream."""

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message=message, error_code="UPSTREAM_ERROR")
        self.upstream_status = upstream_status
