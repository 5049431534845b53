"""Chat error taxonomy and the user-facing text shown for each fault."""

GENERIC_ERROR_TEXT = (
    "Sorry, something went wrong. Please check your model settings and API key, then try again."
)
CREDENTIAL_ERROR_TEXT = (
    "Your active API Key appears to be invalid. Please update it in your settings."
)
CONFIGURATION_ERROR_TEXT = "Please add an API Key in your settings before starting a chat."
RATE_LIMIT_ERROR_TEXT = (
    "The model is receiving too many requests right now. Please wait a moment and try again."
)


class ChatError(Exception):
    pass


class ConfigurationError(ChatError):
    """No credential configured; no turn should be started."""


class TurnInProgressError(ChatError):
    """A turn is already streaming for this character."""


class ModelServiceError(ChatError):
    """Fault reported by the model-invocation service."""


class CredentialError(ModelServiceError):
    pass


class RateLimitError(ModelServiceError):
    pass


class TransportError(ModelServiceError):
    pass


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, CredentialError) or "API key not valid" in str(exc):
        return CREDENTIAL_ERROR_TEXT
    if isinstance(exc, ConfigurationError):
        return CONFIGURATION_ERROR_TEXT
    if isinstance(exc, RateLimitError):
        return RATE_LIMIT_ERROR_TEXT
    return GENERIC_ERROR_TEXT
