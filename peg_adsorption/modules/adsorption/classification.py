# filename: peg_adsorption/modules/adsorption/classification.py
"""
Adsorption classification of PEG chains against the gold (AUS) band.

The two gold layers closest to each other along z, taken modulo the box,
define an adsorption band [a0, a1]. A chain is adsorbed in a frame when its
periodic distance to that band is strictly below the adsorption region.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from peg_adsorption.core.config import ADSORPTION_REGION

logger = logging.getLogger(__name__)


class InputShapeError(ValueError):
    """Input data has a shape the analysis cannot work with (fatal, raised before classification)."""


@dataclass(frozen=True)
class AnchorSet:
    """Lower and upper z position (nm) of the gold band, lower <= upper."""
    lower: float
    upper: float

    def __post_init__(self):
        if self.lower > self.upper:
            raise InputShapeError(
                f"Anchor positions must be ascending, got lower={self.lower} > upper={self.upper}"
            )

    @property
    def width(self) -> float:
        return self.upper - self.lower

    @classmethod
    def from_positions(cls, positions: Sequence[float]) -> "AnchorSet":
        """
        Build the band from distinct anchor z positions.

        The two lowest values are used. Fewer than two distinct positions
        leave the band undefined.
        """
        unique = sorted(set(float(p) for p in positions))
        if len(unique) < 2:
            raise InputShapeError(
                f"At least two distinct anchor positions are required, found {len(unique)}: {unique}"
            )
        if len(unique) > 2:
            logger.warning(f"Found {len(unique)} distinct anchor positions {unique}; "
                           f"using the two lowest ({unique[0]}, {unique[1]}).")
        return cls(unique[0], unique[1])


def periodic_distance(z, anchors: AnchorSet, box_length: float):
    """
    Distance from position(s) z to the anchor band on a ring of circumference box_length.

    Positions below the lower anchor are wrapped up by one box length (only once).
    Inside the band the result is negative.

    Args:
        z: Scalar or numpy array of z positions (nm).
        anchors: The gold band.
        box_length: Box size along z (nm).

    Returns:
        float or numpy.ndarray: min(z' - (a1 - a0), box_length - z') with z' = z - a0 (wrapped).
    """
    z_local = np.asarray(z, dtype=float) - anchors.lower
    z_local = np.where(z_local < 0, z_local + box_length, z_local)
    past_upper = z_local - anchors.width
    through_boundary = box_length - z_local
    distance = np.minimum(past_upper, through_boundary)
    if distance.ndim == 0:
        return float(distance)
    return distance


def check_single_wrap(positions, anchors: AnchorSet, box_length: float) -> int:
    """
    Count positions violating the single-wrap precondition.

    periodic_distance assumes every position satisfies
    -box_length <= z - a0 < box_length, i.e. one added box length is
    enough to bring it into the anchor frame.
    """
    z_local = np.asarray(positions, dtype=float) - anchors.lower
    return int(np.count_nonzero((z_local < -box_length) | (z_local >= box_length)))


def classify_frame(positions, anchors: AnchorSet, box_length: float,
                   region: float = ADSORPTION_REGION) -> Tuple[int, ...]:
    """Indices of the chains in one frame closer than `region` to the anchor band."""
    positions = np.asarray(positions, dtype=float)
    if positions.size == 0:
        return ()
    distances = periodic_distance(positions, anchors, box_length)
    return tuple(int(i) for i in np.flatnonzero(distances < region))


def classify_trajectory(
    frames: Sequence[np.ndarray],
    anchors: AnchorSet,
    box_length: float,
    region: float = ADSORPTION_REGION,
    show_progress: bool = True
) -> List[Tuple[int, ...]]:
    """
    Classify every frame of a z trajectory.

    Args:
        frames: Per-frame arrays of chain z positions, chain index = position in the array.
        anchors: The gold band. Must be an AnchorSet with two anchors.
        box_length: Box size along z (nm), must be positive.
        region: Adsorption threshold (nm).
        show_progress: Show a tqdm progress bar over frames.

    Returns:
        list: One tuple of adsorbed chain indices per frame, in frame order.
    """
    if not isinstance(anchors, AnchorSet):
        raise InputShapeError(f"Expected an AnchorSet with two anchors, got {anchors!r}")
    if not box_length > 0:
        raise InputShapeError(f"Box length must be positive, got {box_length}")

    logger.info("Calculating adsorption of PEG on GOLD...")
    adsorbed_ids = []
    n_wrap_violations = 0
    for positions in tqdm(frames, desc="Classifying frames", unit="frame", disable=not show_progress):
        n_wrap_violations += check_single_wrap(positions, anchors, box_length)
        adsorbed_ids.append(classify_frame(positions, anchors, box_length, region))

    if n_wrap_violations:
        logger.warning(f"{n_wrap_violations} chain positions lie more than one box length "
                       f"({box_length} nm) from the lower anchor; their distances are not fully wrapped.")
    logger.info("Done")
    return adsorbed_ids


def adsorption_probability(adsorbed_ids: Sequence[Sequence[int]]) -> Tuple[int, int, float]:
    """
    Fraction of frames with at least one adsorbed chain.

    Returns:
        tuple: (adsorbed frame count, total frame count, probability in [0, 1]).
    """
    total = len(adsorbed_ids)
    if total == 0:
        raise InputShapeError("Adsorption probability is undefined for a trajectory with no frames")
    adsorbed = sum(1 for ids in adsorbed_ids if len(ids) > 0)
    return adsorbed, total, adsorbed / total
