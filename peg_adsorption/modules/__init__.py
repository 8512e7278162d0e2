# filename: peg_adsorption/modules/__init__.py
"""Analysis modules of the PEG adsorption suite."""
