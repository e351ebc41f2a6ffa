"""Error taxonomy for the email relay.

Every error carries the human-readable message returned in the response
envelope and the HTTP status it maps to.
"""

from typing import Optional


class EmailRelayError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(EmailRelayError):
    """Missing bearer credential or a session the identity provider rejects."""

    # Legacy mapping is 500; STRICT_AUTH_STATUS switches to strict_status_code
    status_code = 500
    strict_status_code = 401


class AuthorizationError(EmailRelayError):
    """Authenticated caller lacks the required role."""

    status_code = 500
    strict_status_code = 403


class MissingFieldsError(EmailRelayError):
    status_code = 400


class SendingDisabledError(EmailRelayError):
    status_code = 403

    def __init__(self, message: str = "Email sending is disabled in settings"):
        super().__init__(message)


class DeliveryError(EmailRelayError):
    """Settings store or SMTP relay failure while handling a send."""

    status_code = 500


class SettingNotFoundError(EmailRelayError):
    status_code = 404

    def __init__(self, key: str):
        super().__init__(f"Setting not found: {key}")
        self.key = key


class SettingsDecodeError(EmailRelayError):
    """A stored setting could not be decoded into its declared type."""

    status_code = 500

    def __init__(self, key: str, value: object, expected: str, detail: Optional[str] = None):
        message = f"Invalid value for setting '{key}': expected {expected}, got {value!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.key = key


def resolve_status_code(exc: EmailRelayError, strict_auth: bool) -> int:
    if strict_auth and hasattr(exc, "strict_status_code"):
        return exc.strict_status_code
    return exc.status_code
