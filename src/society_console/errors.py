"""
Gateway error type and user-facing error descriptions.

Transport failures surface as GatewayError. Screens turn any failure into
an ErrorReport for display; the core never retries.
"""

from dataclasses import dataclass

_STATUS_MESSAGES = {
    400: "Invalid input. Please correct the form.",
    401: "You are not authorized. Please login again.",
    403: "Access denied. Contact your administrator.",
    404: "Requested resource not found.",
    409: "Conflict. The data might already exist.",
    422: "Unprocessable input. Please review the data.",
    500: "Server error. Please try again later.",
    503: "Server is currently unavailable. Try again soon.",
}


class GatewayError(RuntimeError):
    """
    A failed round trip to the backend.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        api_message: The "message" field of the error body, if present.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        api_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.api_message = api_message

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


@dataclass(frozen=True)
class ErrorReport:
    """Messages for the end user and for the log."""

    user_message: str
    developer_message: str
    status_code: int | None = None


def describe_error(
    error: BaseException, fallback_message: str = "Something went wrong."
) -> ErrorReport:
    """
    Translate an exception into user and developer messages.

    Args:
        error: The exception raised by a gateway call.
        fallback_message: Message used when nothing more specific applies.
    """
    developer_message = str(error) or "Unknown error"
    if not isinstance(error, GatewayError):
        return ErrorReport(fallback_message, developer_message)

    if error.status_code is not None:
        user_message = _STATUS_MESSAGES.get(error.status_code) or (
            error.api_message or f"Unexpected error (Code: {error.status_code})"
        )
        return ErrorReport(user_message, developer_message, error.status_code)

    if error.is_network_error and "network" in developer_message.lower():
        return ErrorReport(
            "Cannot reach server. Check your internet connection.",
            "Network Error - likely CORS, VPN, or server down",
        )

    return ErrorReport(error.api_message or fallback_message, developer_message)
