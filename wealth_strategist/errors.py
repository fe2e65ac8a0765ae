"""
Exception hierarchy.

None of these escape the pipeline: ``MissingDataError`` is converted into an
analyzer error string, ``DataSourceError`` degrades a source to ``None``.
They exist so the catch sites can tell an expected gap from a real bug.
"""


class StrategyError(Exception):
    """Base class for all Wealth Strategist errors."""


class MissingDataError(StrategyError):
    """A packet section an analyzer depends on is absent."""


class DataSourceError(StrategyError):
    """A data provider returned a payload that could not be used."""
