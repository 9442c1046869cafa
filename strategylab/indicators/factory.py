"""
A factory for creating financial indicators.

This module provides simple, consistent wrappers for calculating
common financial technical indicators. Every function here is causal: the
value at a given row depends only on that row and the rows before it.
"""
from typing import Optional

import numpy as np
import pandas as pd


def sma(
    close: pd.Series,
    length: int = 20,
    **kwargs,
) -> Optional[pd.Series]:
    """
    Calculates the Simple Moving Average (SMA).

    Args:
        close (pd.Series): A Series of closing prices.
        length (int): The time period.

    Returns:
        Optional[pd.Series]: A Series containing the SMA, or None if the input
        is not long enough.
    """
    if len(close) < length:
        return None
    return close.rolling(window=length).mean()


def ema(
    close: pd.Series,
    length: int = 20,
    **kwargs,
) -> pd.Series:
    """
    Calculates the Exponential Moving Average (EMA).

    Values are NaN until `length` observations are available.

    Args:
        close (pd.Series): A Series of closing prices.
        length (int): The span of the average.

    Returns:
        pd.Series: A Series containing the EMA.
    """
    return close.ewm(span=length, adjust=False, min_periods=length).mean()


def _get_Wilder_SMMA(series: pd.Series, length: int) -> pd.Series:
    """
    Calculates the Wilder's Smoothing Moving Average (SMMA).

    Args:
        series (pd.Series): The input series.
        length (int): The period for the SMMA.

    Returns:
        pd.Series: A Series containing the SMMA.
    """
    return series.ewm(alpha=1/length, adjust=False, min_periods=length).mean()


def rsi(
    close: pd.Series,
    length: int = 14,
    **kwargs,
) -> Optional[pd.Series]:
    """
    Calculates the Relative Strength Index (RSI).

    The first value appears once `length + 1` closes exist. A window with
    gains but no losses reads 100; a window with neither reads NaN.

    Args:
        close (pd.Series): A Series of closing prices.
        length (int): The time period.

    Returns:
        Optional[pd.Series]: A Series containing the RSI, or None if the input
        is not long enough.
    """
    if len(close) < length + 1:
        return None

    delta = close.diff()
    gain = delta.clip(lower=0)
    loss = (-delta).clip(lower=0)

    avg_gain = _get_Wilder_SMMA(gain, length)
    avg_loss = _get_Wilder_SMMA(loss, length)

    rs = avg_gain / avg_loss.replace(0, np.nan)
    rsi = 100 - (100 / (1 + rs))
    # No losses at all: the oscillator is pinned at its ceiling.
    rsi = rsi.mask((avg_loss == 0) & (avg_gain > 0), 100.0)

    return rsi


def macd(
    close: pd.Series,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
    **kwargs,
) -> pd.DataFrame:
    """
    Calculates the Moving Average Convergence/Divergence (MACD).

    Args:
        close (pd.Series): A Series of closing prices.
        fast (int): Span of the fast EMA.
        slow (int): Span of the slow EMA.
        signal (int): Span of the signal line EMA.

    Returns:
        pd.DataFrame: Columns 'macd', 'signal' and 'histogram', where the
        histogram is the MACD line minus its signal line.
    """
    macd_line = ema(close, fast) - ema(close, slow)
    signal_line = macd_line.ewm(span=signal, adjust=False, min_periods=signal).mean()
    return pd.DataFrame(
        {
            "macd": macd_line,
            "signal": signal_line,
            "histogram": macd_line - signal_line,
        },
        index=close.index,
    )
