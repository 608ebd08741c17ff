from typing import Optional


class TTError(Exception):
    """Base class for every error the CLI reports to the user."""


class CredentialMissing(TTError):
    def __init__(self, key: str):
        super().__init__(
            f"The '{key}' credential is not configured. "
            "Run 'tt config openai <api_key>' first."
        )
        self.key = key


class ConfigIoFailure(TTError):
    """Reading or writing the config file failed at the filesystem level."""


class ConfigDirUnresolvable(TTError):
    """The per-user config directory for this platform could not be determined."""


class NetworkFailure(TTError):
    """The request never reached the provider or came back with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        if body:
            message = f"{message}\n{body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedModelReply(TTError):
    """The model answered, but not with the expected JSON object."""

    def __init__(self, reason: str, raw: str):
        super().__init__(
            f"The AI reply could not be parsed ({reason}). Raw reply:\n{raw}"
        )
        self.reason = reason
        self.raw = raw
