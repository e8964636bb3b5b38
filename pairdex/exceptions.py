"""
Pairdex Exceptions

Custom exception classes for the pair engine. Every exception aborts the
enclosing transition; the pair restores its pre-call state before the
exception reaches the caller.
"""


class PairdexException(Exception):
    """Base exception for Pairdex."""
    pass


# -- Preconditions ----------------------------------------------------------

class PreconditionViolation(PairdexException):
    """A caller-supplied argument or the current state rules out the call."""
    pass


class IdenticalAddressesError(PreconditionViolation):
    """Both sides of a pair name the same asset."""
    pass


class ZeroAddressError(PreconditionViolation):
    """A null identity was supplied where a real one is required."""
    pass


class InsufficientInputAmountError(PreconditionViolation):
    """No input was paid into the pair, or a quote was asked for zero."""
    pass


class InsufficientOutputAmountError(PreconditionViolation):
    """A swap requested zero output on both sides."""
    pass


# -- Authority / registry ---------------------------------------------------

class AuthorizationError(PairdexException):
    """Caller is not allowed to perform the operation."""
    pass


class DuplicatePairError(PairdexException):
    """A pair already exists for the unordered asset set."""
    pass


# -- Liquidity / invariant --------------------------------------------------

class InsufficientLiquidityError(PairdexException):
    """Mint or burn would move a zero (or negative) amount."""
    pass


class InsufficientOutputReserveError(PairdexException):
    """Requested swap output meets or exceeds the reserve."""
    pass


class InvariantViolationError(PairdexException):
    """Post-fee constant product decreased."""
    pass


# -- Arithmetic -------------------------------------------------------------

class ArithmeticBoundsError(PairdexException):
    """Result does not fit the declared unsigned width."""
    pass


class ArithmeticOverflowError(ArithmeticBoundsError):
    """Result exceeds the maximum of its width."""
    pass


class ArithmeticUnderflowError(ArithmeticBoundsError):
    """Result would be negative."""
    pass


# -- Execution --------------------------------------------------------------

class ReentrancyError(PairdexException):
    """A transition was entered while another one on the same pair is running."""
    pass


class PermitExpiredError(PairdexException):
    """Permit deadline is in the past."""
    pass


class InvalidSignatureError(PairdexException):
    """Invalid cryptographic signature."""
    pass


class OracleError(PairdexException):
    """Oracle cannot produce an observation or a quote."""
    pass


class ConfigurationError(PairdexException):
    """Configuration error."""
    pass
