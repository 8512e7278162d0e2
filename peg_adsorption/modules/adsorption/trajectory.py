# filename: peg_adsorption/modules/adsorption/trajectory.py
"""
Readers for the GROMACS .xvg time series used by the adsorption analysis:
the per-chain z coordinate trajectory of PEG and the radius of gyration series.
"""

import io
import logging
from typing import List

import numpy as np

from peg_adsorption.core.config import XVG_COMMENT_PREFIXES

logger = logging.getLogger(__name__)


def load_xvg_table(text: str, source: str = "<xvg>") -> np.ndarray:
    """
    Load the numeric block of .xvg text as a 2-D array (rows = data lines).

    Lines starting with '@' or '#' and blank lines are skipped. Every data line
    must have the same number of numeric columns.

    Raises:
        ValueError: Non-numeric values or a changing column count, prefixed with `source`.
    """
    try:
        table = np.loadtxt(io.StringIO(text), comments=XVG_COMMENT_PREFIXES, ndmin=2)
    except ValueError as e:
        raise ValueError(f"{source}: {e}") from e
    if table.size == 0:
        return np.empty((0, 0), dtype=float)
    return table


def parse_z_trajectory(text: str, source: str = "<z trajectory>") -> List[np.ndarray]:
    """
    Parse a PEG z coordinate .xvg into one array of chain positions per frame.

    Each data line is 'step z_0 z_1 ...'; the step is dropped and the chain
    index is the column position.
    """
    table = load_xvg_table(text, source)
    return [row[1:].copy() for row in table]


def parse_rg_series(text: str, source: str = "<rg series>") -> np.ndarray:
    """
    Parse a radius of gyration .xvg ('step Rg Rgx Rgy Rgz') into the Rg column.
    """
    table = load_xvg_table(text, source)
    if table.shape[0] == 0:
        return np.zeros(0, dtype=float)
    if table.shape[1] < 2:
        raise ValueError(f"{source}: expected at least 'step Rg' columns, got {table.shape[1]}")
    return table[:, 1].copy()


def _read_text(path: str, what: str) -> str:
    logger.info(f"Reading {path}...")
    try:
        with open(path, 'r') as f:
            return f.read()
    except OSError as e:
        logger.error(f"Reading {what} file '{path}' failed: {e}")
        raise


def read_z_trajectory(path: str) -> List[np.ndarray]:
    """Read a PEG z coordinate .xvg file into per-frame position arrays."""
    frames = parse_z_trajectory(_read_text(path, "z trajectory"), source=path)
    logger.info(f"Read {len(frames)} frames")
    logger.info("Done")
    return frames


def read_rg_series(path: str) -> np.ndarray:
    """Read a radius of gyration .xvg file into a 1-D array of Rg values."""
    rgs = parse_rg_series(_read_text(path, "radius of gyration"), source=path)
    logger.info(f"Read {len(rgs)} Rg values")
    logger.info("Done")
    return rgs
