"""
Error taxonomy for the energy modeller.

Numerical edge cases are recovered locally by the fallback policies of the
share rules and estimators; only the errors below ever cross a component
boundary.
"""


class EnergyModellerError(Exception):
    """Base class for energy modeller errors."""


class MissingWeightError(EnergyModellerError, KeyError):
    """An energy user was queried that has no weight in the division."""


class ZeroWeightSumError(EnergyModellerError, ZeroDivisionError):
    """All weights of a division sum to zero, so no share can be computed."""


class MissingLoadFractionError(EnergyModellerError, KeyError):
    """A load fraction rule was asked to weight a user with no measured fraction."""


class MissingHistoryError(EnergyModellerError, LookupError):
    """The historical store holds no record for the requested key."""


class RuleTableError(EnergyModellerError):
    """The predictor rule table could not be read or written."""
