class AutomationError(Exception):
    """Base automation error with machine-readable code."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)


class StepDecodeError(AutomationError):
    """The step descriptor cannot be turned into an executor config."""


class AttributeEncodingError(AutomationError):
    """A single RADIUS attribute could not be encoded."""

    def __init__(self, attribute: str, message: str) -> None:
        self.attribute = attribute
        super().__init__("ATTRIBUTE_ENCODING_FAILED", message)


class ExchangeError(AutomationError):
    """Network exchange failed, expired or was canceled."""


def error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
