"""Exception types shared by the registry, the client and the orchestrator."""


class SolarShareError(Exception):
    """Base class for all SolarShare errors."""


class ValidationError(SolarShareError):
    """A required field is missing or malformed. Nothing was changed."""


class TransportError(SolarShareError):
    """The server or the storage behind it could not complete a call."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransferCancelled(SolarShareError):
    """A batch was stopped on purpose. Not a failure."""
