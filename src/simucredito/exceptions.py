"""Exception hierarchy for simucredito."""


class SimulatorError(Exception):
    """Base exception for all simucredito errors."""


class InvalidInputError(SimulatorError, ValueError):
    """Raised when a caller supplies loan or rate parameters that cannot be simulated."""


class InvalidRateKindError(InvalidInputError):
    """Raised when a rate is neither effective (TE) nor nominal (TN)."""


class ValueNotFoundError(SimulatorError, LookupError):
    """Raised when a global parameter is absent or outside its validity window."""


class FetchError(SimulatorError):
    """Raised when an online exchange-rate fetch fails for any reason."""
