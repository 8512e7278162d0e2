"""
PEG Adsorption Analysis

Post-processing of GROMACS molecular dynamics output to decide, frame by frame,
which PEG chains are adsorbed on the gold (AUS) surface along the periodic z axis,
and to build radius-of-gyration histograms conditioned on the adsorption state.

Analysis runs are tracked in a per-run SQLite registry:
1. Module execution status
2. Registered output products
3. Key metrics (adsorption probability, mean Rg per state)
"""

from .core import __version__

__all__ = ['__version__']
