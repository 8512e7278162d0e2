# filename: peg_adsorption/modules/adsorption/__init__.py
"""
Adsorption Analysis Package

Classifies PEG chains as adsorbed on the gold (AUS) band frame by frame,
accounting for the periodic box along z, and builds radius of gyration
histograms for all, adsorbed and non-adsorbed frames.
Separated into computation (data products, metrics) and visualization.
"""

from .classification import (
    AnchorSet, InputShapeError, periodic_distance, classify_frame,
    classify_trajectory, adsorption_probability
)
from .histogram import Histogram, calc_histogram
from .computation import run_adsorption_analysis, partition_by_adsorption
from .visualization import generate_adsorption_plots

__all__ = [
    'AnchorSet',
    'InputShapeError',
    'periodic_distance',
    'classify_frame',
    'classify_trajectory',
    'adsorption_probability',
    'Histogram',
    'calc_histogram',
    'run_adsorption_analysis',
    'partition_by_adsorption',
    'generate_adsorption_plots',
]
