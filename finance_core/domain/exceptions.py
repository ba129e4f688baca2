"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidAmountFormat(DomainException):
    """Monetary input could not be parsed into cents"""

    pass


class InvalidLoanParameters(DomainException):
    """Loan principal, rate or term is not usable for amortization"""

    pass


class InvalidBudgetDefinition(DomainException):
    """Budget limit or alert thresholds are invalid"""

    pass


class InvalidPeriodRange(DomainException):
    """Date range, horizon or period kind is invalid"""

    pass


class InvalidScheduleTransition(DomainException):
    """Amortization entry status tried to move backwards"""

    pass


class InvalidTransfer(DomainException):
    """Transfer between entities is malformed"""

    pass


class InsufficientBalance(InvalidTransfer):
    """Source entity's derived balance does not cover the transfer"""

    pass
