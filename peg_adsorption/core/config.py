# config.py
"""
Configuration settings for the PEG adsorption analysis.
"""

# --- Global Version ---
Analysis_version = "1.0.0"
# ---------------------

# --- Adsorption Parameters ---
#: Distance (nm) from the gold band below which a PEG chain counts as adsorbed (strict '<')
ADSORPTION_REGION: float = 0.700

#: Residue/atom label of the anchor (gold) records in the structure file
ANCHOR_LABEL = "AUS"

# --- GRO Format ---
#: Start column (0-based, inclusive) of the z coordinate in a GRO atom line
GRO_Z_COLUMN_START = 36
#: End column (0-based, exclusive) of the z coordinate in a GRO atom line
GRO_Z_COLUMN_END = 44

# --- XVG Format ---
#: Line prefixes marking metadata/comment lines in GROMACS .xvg output
XVG_COMMENT_PREFIXES = ("@", "#")

# --- Histogram Parameters ---
#: Number of bins for the radius of gyration histograms
HISTOGRAM_BINS = 50

# --- Default Input Files (relative to the run folder) ---
#: Structure snapshot holding the gold atoms and the box size
DEFAULT_STRUCTURE_FILE = "md-run.gro"
#: Per-chain z coordinate trajectory of PEG
DEFAULT_PEG_Z_FILE = "peg_z.xvg"
#: Radius of gyration time series of PEG
DEFAULT_PEG_RG_FILE = "rg_peg.xvg"

# --- Output Files ---
#: Subdirectory of the run folder receiving all adsorption outputs
OUTPUT_SUBDIR = "adsorption_analysis"
#: Per-frame table of adsorbed PEG indices
CLASSIFICATION_FILE = "adsorpedPegIDs.dat"
#: Histogram file name pattern, formatted with the subset label
HISTOGRAM_FILE_PATTERN = "rgHist{label}.dat"
#: Per-frame adsorption state table (CSV)
STATES_CSV_FILE = "Adsorption_States.csv"
