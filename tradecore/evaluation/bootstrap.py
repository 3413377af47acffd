"""
Block bootstrap of candle series.

Shuffles fixed-size contiguous blocks (each block used exactly once) so
short-term autocorrelation inside a block survives. Each block is rescaled to
open at the previous block's closing level, and the result is re-stamped with
the original ascending timestamps.
"""
from dataclasses import replace
from typing import List, Sequence

import numpy as np

from ..shared.types import Candle
from ..shared.defaults import BLOCK_SIZE


def _rescale(candle: Candle, factor: float, timestamp) -> Candle:
    return replace(
        candle,
        timestamp=timestamp,
        open=candle.open * factor,
        high=candle.high * factor,
        low=candle.low * factor,
        close=candle.close * factor,
    )


def block_bootstrap(
    candles: Sequence[Candle],
    rng: np.random.Generator,
    block_size: int = BLOCK_SIZE,
) -> List[Candle]:
    """
    Build one bootstrapped series.

    Args:
        candles: Ascending source series
        rng: Seeded generator (the only source of randomness)
        block_size: Bars per block; a trailing partial block is dropped

    Returns:
        New series of len(candles) // block_size * block_size candles
        (a copy of the input when it is shorter than one block)
    """
    num_blocks = len(candles) // block_size if block_size > 0 else 0
    if num_blocks == 0:
        return list(candles)

    timestamps = [c.timestamp for c in candles[:num_blocks * block_size]]
    picks = rng.permutation(num_blocks)

    series: List[Candle] = []
    for block_index in picks:
        block = candles[block_index * block_size:(block_index + 1) * block_size]
        factor = 1.0
        if series and block[0].open > 0:
            factor = series[-1].close / block[0].open
        for candle in block:
            series.append(_rescale(candle, factor, timestamps[len(series)]))
    return series
