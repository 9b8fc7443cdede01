"""
Exception Taxonomy
==================
All engine errors derive from ``RiskEngineError`` (itself a ``ValueError``)
so callers can catch the whole family in one place.
"""


class RiskEngineError(ValueError):
    """Base class for every error raised by the risk engine."""


class InvalidParameterError(RiskEngineError):
    """Out-of-range confidence, horizon, value or simulation count."""


class DimensionMismatchError(RiskEngineError):
    """Weights, symbols and return series do not line up."""


class InsufficientDataError(RiskEngineError):
    """Empty or too-short return series for the requested computation."""


class PortfolioFileError(RiskEngineError):
    """Portfolio CSV is missing columns or holds unparsable rows."""


class MarketDataError(RiskEngineError):
    """A return-series provider failed or timed out."""
