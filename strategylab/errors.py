"""
Exceptions raised when input data cannot be backtested.
"""


class InsufficientDataError(ValueError):
    """Raised when a candle series is shorter than the indicator warm-up."""


class DataQualityError(ValueError):
    """Raised when candle data is malformed or a metric is undefined for it."""
