# filename: peg_adsorption/modules/adsorption/structure.py
"""
Extraction of the gold anchor band and the box length from a GROMACS .gro snapshot.

GRO layout (fixed columns): title line, atom count line, one line per atom
(residue number 0-5, residue name 5-10, atom name 10-15, atom number 15-20,
x 20-28, y 28-36, z 36-44, ...), and a final box line 'v1(x) v2(y) v3(z) ...'.
"""

import logging
from typing import List, Tuple

from peg_adsorption.core.config import (
    ANCHOR_LABEL, GRO_Z_COLUMN_START, GRO_Z_COLUMN_END
)
from .classification import AnchorSet, InputShapeError

logger = logging.getLogger(__name__)


def parse_box_line(line: str) -> Tuple[float, ...]:
    """Parse the trailing GRO box line. At least three numeric fields are required."""
    fields = line.split()
    try:
        box = tuple(float(f) for f in fields)
    except ValueError:
        raise InputShapeError(f"Invalid file format: box size line is not numeric: '{line.strip()}'")
    if len(box) < 3:
        raise InputShapeError(
            f"Invalid file format: No box size in last line or less than 3 elements: '{line.strip()}'"
        )
    return box


def is_anchor_line(line: str, label: str = ANCHOR_LABEL) -> bool:
    """True when the residue name or atom name field of a GRO atom line equals `label`."""
    return label in (line[5:10].strip(), line[10:15].strip())


def extract_anchor_z(atom_lines: List[str], label: str = ANCHOR_LABEL) -> List[float]:
    """
    Distinct z coordinates (nm) of the anchor atoms, ascending.

    Coordinates are de-duplicated on their text before conversion, so atoms of
    one gold layer (same printed z) collapse to a single value.
    """
    z_strings = []
    seen = set()
    for line in atom_lines:
        if not is_anchor_line(line, label):
            continue
        z_str = line[GRO_Z_COLUMN_START:GRO_Z_COLUMN_END].strip()
        if z_str not in seen:
            seen.add(z_str)
            z_strings.append(z_str)

    z_values = []
    for z_str in z_strings:
        try:
            z_values.append(float(z_str))
        except ValueError:
            logger.warning(f"Skipping {label} record with unreadable z coordinate '{z_str}'")
    return sorted(set(z_values))


def parse_structure_text(text: str, label: str = ANCHOR_LABEL) -> Tuple[AnchorSet, float]:
    """
    Parse GRO text into the anchor band and the box length along z.

    Args:
        text: Full content of a .gro file.
        label: Residue/atom name identifying the anchor atoms.

    Returns:
        tuple: (AnchorSet, box_z)

    Raises:
        InputShapeError: Missing or short box line, non-positive box z, or
            fewer than two distinct anchor z positions.
    """
    lines = text.strip().split("\n")
    if len(lines) < 3:
        raise InputShapeError(f"Invalid file format: expected title, atom count, atoms and box lines, "
                              f"got {len(lines)} line(s)")

    box = parse_box_line(lines[-1])
    box_z = box[2]
    if box_z <= 0:
        raise InputShapeError(f"Box length along z must be positive, got {box_z}")

    anchor_z = extract_anchor_z(lines[2:-1], label)
    logger.debug(f"Distinct {label} z positions: {anchor_z}")
    anchors = AnchorSet.from_positions(anchor_z)
    return anchors, box_z


def read_structure_file(path: str, label: str = ANCHOR_LABEL) -> Tuple[AnchorSet, float]:
    """Read a .gro file and return (AnchorSet, box_z)."""
    logger.info(f"Reading {path}...")
    try:
        with open(path, 'r') as f:
            text = f.read()
    except OSError as e:
        logger.error(f"Reading structure file '{path}' failed: {e}")
        raise
    anchors, box_z = parse_structure_text(text, label)
    logger.info(f"Anchor band: {anchors.lower} - {anchors.upper} nm, box z: {box_z} nm")
    logger.info("Done")
    return anchors, box_z
