"""Error taxonomy for position operations.

Every error is a synchronous, local rejection: the failing operation leaves
the position's state exactly as it found it.
"""


class PositionError(Exception):
    """Base class for all position errors."""


class Unauthorized(PositionError):
    """Caller does not hold the role the operation requires."""


class Undercollateralized(PositionError):
    """A borrow or withdraw would breach (or already breaches) the borrow limit."""


class NotLiquidatable(PositionError):
    """Debt has not crossed the liquidation threshold."""


class LiquidateTooMuch(PositionError):
    """More collateral requested than the close factor allows in one call."""


class TooMuchCollateralNeeded(PositionError):
    """Quoted collateral exceeds the caller's stated maximum."""


class EmptyConverter(PositionError):
    """No converter supplied or registered for a market."""


class SourceMismatch(PositionError):
    """Converter does not take the collateral asset as input."""


class DestinationMismatch(PositionError):
    """Converter does not produce the market's debt asset."""


class LengthMismatch(PositionError):
    """Markets and converters sequences differ in length."""


class BorrowFailed(PositionError):
    """The lending market rejected the borrow."""


class RepayFailed(PositionError):
    """The lending market rejected the repayment."""


class SeizeCollateralDenied(PositionError):
    """The collateral asset cannot be swept out of the position."""


class ArithmeticUnderflow(PositionError):
    """An unsigned quantity would go negative."""
