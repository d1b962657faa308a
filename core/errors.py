"""
Exceptions raised inside FX Pulse components.
"""


class FXPulseError(Exception):
    """Base class for FX Pulse errors."""


class FetchError(FXPulseError):
    """A data collaborator could not deliver usable data."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class InsufficientDataError(FXPulseError):
    """The series is shorter than an indicator's required period."""

    def __init__(self, indicator: str, required: int, available: int):
        super().__init__(
            f"{indicator} needs at least {required} prices, got {available}"
        )
        self.indicator = indicator
        self.required = required
        self.available = available
