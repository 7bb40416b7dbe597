#!/usr/bin/env python3
"""
Error taxonomy for the options token system.

Every failure aborts the whole unit of work it was raised in. The category
classes let callers tell apart a misconfigured deployment, a feed that is not
ready yet, an arithmetic overflow, an authorization failure and an ordinary
user-correctable rule violation.
"""


class OptionsTokenSimError(Exception):
    """Base class for all errors raised by the system"""

    retriable = False

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__name__)


# Configuration errors (construction-time, fatal)

class ConfigurationError(OptionsTokenSimError):
    pass


class StablePairsUnsupported(ConfigurationError):
    """The feed's pair prices with the stable-swap invariant"""


class InvalidFeeConfig(ConfigurationError):
    """Fee recipients and basis points do not line up"""


# Staleness / availability errors (retriable once the window rolls forward)

class StalenessError(OptionsTokenSimError):
    retriable = True


class TWAPOracleNotReady(StalenessError):
    """The requested lookback window cannot be served by the feed"""


class OracleQueryTooOld(StalenessError):
    """A windowed query reaches past the oldest stored sample"""


# Numeric-safety errors

class NumericError(OptionsTokenSimError):
    pass


class Overflow(NumericError):
    """A value does not fit the integer width it is narrowed to"""


# Authorization errors

class AuthorizationError(OptionsTokenSimError):
    pass


class Unauthorized(AuthorizationError):
    """Caller is not the administrator"""


class NotOptionsToken(AuthorizationError):
    """A strategy was invoked by someone other than the options token"""


# Business-rule errors (user-correctable)

class BusinessRuleError(OptionsTokenSimError):
    pass


class SlippageTooHigh(BusinessRuleError):
    """Payment required exceeds the caller's ceiling"""


class PastDeadline(BusinessRuleError):
    pass


class NotOption(BusinessRuleError):
    """Option id does not refer to a registered strategy"""


class NotActive(BusinessRuleError):
    """Option is registered but deactivated"""


# Ledger errors

class LedgerError(OptionsTokenSimError):
    pass


class InsufficientBalance(LedgerError):
    pass


class InsufficientAllowance(LedgerError):
    pass


# Execution environment errors

class ExecutionError(OptionsTokenSimError):
    pass


class Reentrancy(ExecutionError):
    pass


class NoSender(ExecutionError):
    """An external call was made without an acting account"""
