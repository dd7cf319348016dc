# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Error taxonomy shared by every layer.
Services raise these; main.py maps them to HTTP responses in one place.
"""


class OnCallError(Exception):
    """Base class. `status_code` is the HTTP status the API surfaces."""

    status_code: int = 500
    code: str = "oncall_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class Unauthorized(OnCallError):
    status_code = 401
    code = "unauthorized"


class NotFoundError(OnCallError):
    status_code = 404
    code = "not_found"


class ValidationError(OnCallError):
    status_code = 400
    code = "validation_error"


class ConfigurationError(OnCallError):
    status_code = 500
    code = "configuration_error"


class ChannelError(OnCallError):
    """A notification channel refused or failed a send."""

    status_code = 502
    code = "channel_error"

    def __init__(self, detail: str, channel: str, recipient: str | None = None) -> None:
        super().__init__(detail)
        self.channel = channel
        self.recipient = recipient


class StoreError(OnCallError):
    status_code = 500
    code = "store_error"
