# filename: peg_adsorption/core/__init__.py
"""
Core utilities shared by the PEG adsorption analysis: configuration,
logging setup, the run registry database and plotting style.
"""

__version__ = "1.0.0"
