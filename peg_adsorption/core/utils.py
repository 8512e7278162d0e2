# utils.py
"""
Utility functions for the PEG adsorption analysis.
"""

import os
import math
from datetime import datetime

import numpy as np


def resolve_input_path(run_dir, path):
    """
    Resolve an input file path against the run directory.

    Absolute paths are returned unchanged; relative paths are taken relative
    to `run_dir`.
    """
    if os.path.isabs(path):
        return path
    return os.path.join(run_dir, path)


def safe_mean(values):
    """Mean of a sample, NaN for an empty sample (no RuntimeWarning)."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return np.nan
    return float(np.mean(values))


def clean_json_data(data):
    """Recursively cleans data structure for JSON serialization.
       Converts NaN/Infinity to None, numpy types to Python types.
    """
    if isinstance(data, dict):
        return {k: clean_json_data(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [clean_json_data(item) for item in data]
    elif isinstance(data, np.integer):
        return int(data)
    elif isinstance(data, np.floating):
        if np.isnan(data) or np.isinf(data):
            return None
        return float(data)
    elif isinstance(data, np.ndarray):
        return [clean_json_data(item) for item in data.tolist()]
    elif isinstance(data, np.bool_):
        return bool(data)
    elif isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            return None
        return data
    elif isinstance(data, datetime):
        return data.isoformat()

    return data
