# filename: peg_adsorption/modules/adsorption/histogram.py
"""
Fixed-width histograms of the radius of gyration.

Bin width is (max - min) / (bins - 1), so the centers run from
min + 0.5w to max + 0.5w. This matches the rgHist*.dat files written by
earlier versions of the analysis and is kept for output compatibility.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Histogram:
    """Bin counts and bin center values, equal length."""
    counts: np.ndarray
    centers: np.ndarray

    def __len__(self):
        return len(self.counts)

    @property
    def total(self) -> int:
        return int(self.counts.sum())


def calc_histogram(data, bins: int) -> Histogram:
    """
    Bin `data` into `bins` fixed-width bins.

    Degenerate samples do not divide by zero: an empty sample gives a
    histogram with no bins, and a sample with a single distinct value gives
    one bin holding every sample.

    Args:
        data: 1-D sequence of finite floats.
        bins: Number of bins (>= 1).

    Returns:
        Histogram: counts (int) and centers (float).
    """
    if bins < 1:
        raise ValueError(f"Number of bins must be a positive integer, got {bins}")

    values = np.asarray(data, dtype=float).ravel()
    if values.size == 0:
        return Histogram(np.zeros(0, dtype=int), np.zeros(0, dtype=float))
    if not np.all(np.isfinite(values)):
        raise ValueError("Histogram input contains NaN or infinite values")

    vmin = values.min()
    vmax = values.max()
    if vmin == vmax:
        return Histogram(np.array([values.size], dtype=int), np.array([vmin], dtype=float))
    if bins == 1:
        return Histogram(np.array([values.size], dtype=int), np.array([0.5 * (vmin + vmax)]))

    width = (vmax - vmin) / (bins - 1)
    indices = np.floor((values - vmin) / width).astype(int)
    # Rounding can push x == max to index `bins`
    indices = np.clip(indices, 0, bins - 1)

    counts = np.bincount(indices, minlength=bins)
    centers = vmin + (np.arange(bins) + 0.5) * width
    return Histogram(counts, centers)
