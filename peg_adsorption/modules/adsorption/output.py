# filename: peg_adsorption/modules/adsorption/output.py
"""
Writers for the adsorption analysis outputs.

The two plain-text tables keep the column layout of the original analysis
tool so existing plotting scripts can read them:
  rgHist<Label>.dat   'center(18 wide) count'
  adsorpedPegIDs.dat  'frame(6 wide) Rg(8 wide) id id ...' (ids right-aligned, 2 wide)
"""

import os
import logging
from typing import Sequence

import numpy as np
import pandas as pd

from peg_adsorption.core.config import (
    HISTOGRAM_FILE_PATTERN, CLASSIFICATION_FILE, STATES_CSV_FILE
)
from .histogram import Histogram

logger = logging.getLogger(__name__)


def format_number(value) -> str:
    """Shortest round-trip text of a number, whole values without a trailing '.0' (2.0 -> '2')."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def histogram_filename(label: str) -> str:
    return HISTOGRAM_FILE_PATTERN.format(label=label)


def format_histogram(histogram: Histogram) -> str:
    lines = [f"{format_number(center):<18} {int(count)}\n"
             for center, count in zip(histogram.centers, histogram.counts)]
    return "".join(lines)


def format_classification(adsorbed_ids: Sequence[Sequence[int]], rgs: Sequence[float]) -> str:
    lines = []
    for frame, ids in enumerate(adsorbed_ids):
        fields = [f"{frame:<6}", f"{format_number(rgs[frame]):<8}"]
        fields.extend(f"{int(i):>2}" for i in ids)
        lines.append(" ".join(fields) + "\n")
    return "".join(lines)


def write_histogram(histogram: Histogram, label: str, output_dir: str) -> str:
    """Write one histogram table and return its path."""
    logger.info("Writing the result of histogram...")
    path = os.path.join(output_dir, histogram_filename(label))
    with open(path, 'w') as f:
        f.write(format_histogram(histogram))
    logger.info("Done")
    return path


def write_classification(adsorbed_ids: Sequence[Sequence[int]], rgs: Sequence[float], output_dir: str) -> str:
    """Write the per-frame adsorbed chain table and return its path."""
    logger.info("Writing the result of adsorption...")
    path = os.path.join(output_dir, CLASSIFICATION_FILE)
    with open(path, 'w') as f:
        f.write(format_classification(adsorbed_ids, rgs))
    logger.info("Done")
    return path


def build_states_dataframe(adsorbed_ids: Sequence[Sequence[int]], rgs: Sequence[float]) -> pd.DataFrame:
    """Per-frame table: frame, Rg, number of adsorbed chains, adsorbed flag and ids."""
    n_adsorbed = np.array([len(ids) for ids in adsorbed_ids], dtype=int)
    return pd.DataFrame({
        'Frame': np.arange(len(adsorbed_ids)),
        'Rg (nm)': np.asarray(rgs, dtype=float),
        'N_Adsorbed': n_adsorbed,
        'Adsorbed': n_adsorbed > 0,
        'Adsorbed_PEG_IDs': [" ".join(str(i) for i in ids) for ids in adsorbed_ids],
    })


def write_states_csv(adsorbed_ids: Sequence[Sequence[int]], rgs: Sequence[float], output_dir: str) -> str:
    path = os.path.join(output_dir, STATES_CSV_FILE)
    build_states_dataframe(adsorbed_ids, rgs).to_csv(path, index=False, float_format='%.6f')
    logger.info(f"Saved per-frame adsorption states to {path}")
    return path


def read_histogram_table(path: str) -> pd.DataFrame:
    """Read a rgHist*.dat table back as a DataFrame with 'center' and 'count' columns."""
    if os.path.getsize(path) == 0:
        return pd.DataFrame({'center': pd.Series(dtype=float), 'count': pd.Series(dtype=int)})
    return pd.read_csv(path, sep=r'\s+', header=None, names=['center', 'count'])
