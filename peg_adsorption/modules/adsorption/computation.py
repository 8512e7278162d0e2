# filename: peg_adsorption/modules/adsorption/computation.py
"""
Computation driver for the PEG adsorption analysis.

Reads the gold band from the structure snapshot, classifies every frame of the
PEG z trajectory, partitions the radius of gyration series by adsorption state,
builds the three Rg histograms, saves the tables and stores metrics in the
run registry.
"""

import os
import time
import logging
import sqlite3
from typing import Dict, List, Optional, Sequence, Any

import numpy as np

from peg_adsorption.core.config import (
    ADSORPTION_REGION, HISTOGRAM_BINS, ANCHOR_LABEL, OUTPUT_SUBDIR,
    DEFAULT_STRUCTURE_FILE, DEFAULT_PEG_Z_FILE, DEFAULT_PEG_RG_FILE
)
from peg_adsorption.core.database import (
    init_db, register_module, update_module_status, register_product, store_metric,
    clear_module_results
)
from peg_adsorption.core.utils import resolve_input_path, safe_mean
from .classification import InputShapeError, classify_trajectory, adsorption_probability
from .histogram import calc_histogram
from .structure import read_structure_file
from .trajectory import read_z_trajectory, read_rg_series
from .output import write_histogram, write_classification, write_states_csv

logger = logging.getLogger(__name__)

MODULE_NAME = "adsorption_analysis"

#: Histogram labels, in output order; also the rgHist<Label>.dat suffixes of the original tool
SUBSET_ALL = "All"
SUBSET_ADSORBED = "Adsorped"
SUBSET_NONADSORBED = "Nondsorped"

#: Registry subcategory of each histogram product
HISTOGRAM_SUBCATEGORIES = {
    SUBSET_ALL: "rg_histogram_all",
    SUBSET_ADSORBED: "rg_histogram_adsorbed",
    SUBSET_NONADSORBED: "rg_histogram_nonadsorbed",
}

#: Modules whose products are derived from this one and go stale with it
DEPENDENT_MODULES = ("adsorption_analysis_visualization",)


def partition_by_adsorption(rgs, adsorbed_ids: Sequence[Sequence[int]]) -> Dict[str, np.ndarray]:
    """
    Split the Rg series into all / adsorbed / non-adsorbed frames.

    A frame is adsorbed when at least one chain is adsorbed in it.
    `rgs` and `adsorbed_ids` must be index-aligned.
    """
    rgs = np.asarray(rgs, dtype=float)
    if len(rgs) != len(adsorbed_ids):
        raise InputShapeError(
            f"Rg series has {len(rgs)} values but the z trajectory has {len(adsorbed_ids)} frames"
        )
    mask = np.array([len(ids) > 0 for ids in adsorbed_ids], dtype=bool)
    return {
        SUBSET_ALL: rgs,
        SUBSET_ADSORBED: rgs[mask],
        SUBSET_NONADSORBED: rgs[~mask],
    }


def _remove_previous_outputs(run_dir: str, db_conn: sqlite3.Connection) -> List[str]:
    """
    Unregister and delete the outputs of an earlier run of this module and of
    the modules derived from it. Returns the removed relative paths.
    """
    removed = []
    for module_name in (MODULE_NAME,) + DEPENDENT_MODULES:
        for rel_path in clear_module_results(db_conn, module_name):
            full_path = os.path.join(run_dir, rel_path)
            if not os.path.isfile(full_path):
                continue
            try:
                os.remove(full_path)
                removed.append(rel_path)
            except OSError as e:
                logger.warning(f"Could not remove previous output {full_path}: {e}")
    if removed:
        logger.info(f"Removed {len(removed)} output file(s) of the previous run.")
    return removed


def run_adsorption_analysis(
    run_dir: str,
    structure_file: Optional[str] = None,
    z_file: Optional[str] = None,
    rg_file: Optional[str] = None,
    db_conn: Optional[sqlite3.Connection] = None,
    region: float = ADSORPTION_REGION,
    bins: int = HISTOGRAM_BINS,
    is_cyclic: bool = False,
    show_progress: bool = True
) -> Dict[str, Any]:
    """
    Run the adsorption analysis for one run folder.

    Args:
        run_dir (str): Run directory. Relative input paths are resolved against it,
            outputs are written to '<run_dir>/adsorption_analysis'.
        structure_file (str, optional): GRO snapshot with the gold atoms and box line.
        z_file (str, optional): PEG z coordinate .xvg.
        rg_file (str, optional): PEG radius of gyration .xvg.
        db_conn (sqlite3.Connection, optional): Open registry connection. If None,
            the registry in run_dir is opened (and closed again) here.
        region (float): Adsorption threshold (nm).
        bins (int): Number of histogram bins.
        is_cyclic (bool): Cyclic PEG flag. Recorded only, classification is the same.
        show_progress (bool): Show a progress bar while classifying frames.

    Returns:
        dict: {'status': 'success'|'failed', 'error', 'data', 'metadata', 'files'}
    """
    start_time = time.time()
    structure_file = resolve_input_path(run_dir, structure_file or DEFAULT_STRUCTURE_FILE)
    z_file = resolve_input_path(run_dir, z_file or DEFAULT_PEG_Z_FILE)
    rg_file = resolve_input_path(run_dir, rg_file or DEFAULT_PEG_RG_FILE)

    owns_conn = db_conn is None
    if owns_conn:
        db_conn = init_db(run_dir)
        if db_conn is None:
            logger.error(f"Failed to open registry database for {run_dir}. Cannot proceed.")
            return {'status': 'failed', 'error': 'Database connection failed',
                    'data': {}, 'metadata': {}, 'files': {}}

    _remove_previous_outputs(run_dir, db_conn)
    register_module(db_conn, MODULE_NAME, "running", parameters={
        'structure_file': structure_file, 'z_file': z_file, 'rg_file': rg_file,
        'region': region, 'bins': bins, 'is_cyclic': is_cyclic,
    })

    output_dir = os.path.join(run_dir, OUTPUT_SUBDIR)
    results: Dict[str, Any] = {'status': 'failed', 'error': None, 'data': {}, 'metadata': {}, 'files': {}}

    try:
        os.makedirs(output_dir, exist_ok=True)
        logger.info(f"Adsorption analysis outputs will be saved to: {output_dir}")
        if is_cyclic:
            logger.info("Cyclic PEG mode requested; adsorption criterion is unchanged.")

        anchors, box_z = read_structure_file(structure_file, ANCHOR_LABEL)
        frames = read_z_trajectory(z_file)
        adsorbed_ids = classify_trajectory(frames, anchors, box_z, region, show_progress=show_progress)

        n_adsorbed, n_total, probability = adsorption_probability(adsorbed_ids)
        logger.info(f"Adsorption probability: {n_adsorbed} / {n_total} = {probability * 100} %")

        rgs = read_rg_series(rg_file)
        subsets = partition_by_adsorption(rgs, adsorbed_ids)

        histograms = {}
        for label, values in subsets.items():
            histograms[label] = calc_histogram(values, bins)
            if len(values) == 0:
                logger.warning(f"No frames in the '{label}' subset; writing an empty histogram.")
            hist_path = write_histogram(histograms[label], label, output_dir)
            rel_path = os.path.relpath(hist_path, run_dir)
            register_product(db_conn, MODULE_NAME, "dat", "data", rel_path,
                             subcategory=HISTOGRAM_SUBCATEGORIES[label],
                             description=f"Radius of gyration histogram ({label} frames)")
            results['files'][HISTOGRAM_SUBCATEGORIES[label]] = rel_path

        classification_path = write_classification(adsorbed_ids, rgs, output_dir)
        rel_path = os.path.relpath(classification_path, run_dir)
        register_product(db_conn, MODULE_NAME, "dat", "data", rel_path,
                         subcategory="adsorbed_peg_ids",
                         description="Adsorbed PEG indices per frame")
        results['files']['adsorbed_peg_ids'] = rel_path

        states_path = write_states_csv(adsorbed_ids, rgs, output_dir)
        rel_path = os.path.relpath(states_path, run_dir)
        register_product(db_conn, MODULE_NAME, "csv", "data", rel_path,
                         subcategory="adsorption_states",
                         description="Per-frame adsorption state and Rg")
        results['files']['adsorption_states'] = rel_path

        store_metric(db_conn, MODULE_NAME, "Adsorption_Probability", probability * 100, "%",
                     "Fraction of frames with at least one adsorbed PEG chain")
        store_metric(db_conn, MODULE_NAME, "Adsorbed_Frames", n_adsorbed, "frames",
                     "Frames with at least one adsorbed PEG chain")
        store_metric(db_conn, MODULE_NAME, "Total_Frames", n_total, "frames", "Frames in the z trajectory")
        store_metric(db_conn, MODULE_NAME, "Mean_Rg_All", safe_mean(subsets[SUBSET_ALL]), "nm",
                     "Mean radius of gyration over all frames")
        store_metric(db_conn, MODULE_NAME, "Mean_Rg_Adsorbed", safe_mean(subsets[SUBSET_ADSORBED]), "nm",
                     "Mean radius of gyration over adsorbed frames")
        store_metric(db_conn, MODULE_NAME, "Mean_Rg_Nonadsorbed", safe_mean(subsets[SUBSET_NONADSORBED]), "nm",
                     "Mean radius of gyration over non-adsorbed frames")
        store_metric(db_conn, MODULE_NAME, "Box_Z", box_z, "nm", "Box length along z")
        store_metric(db_conn, MODULE_NAME, "Anchor_Z_Lower", anchors.lower, "nm", "Lower gold layer z")
        store_metric(db_conn, MODULE_NAME, "Anchor_Z_Upper", anchors.upper, "nm", "Upper gold layer z")

        execution_time = time.time() - start_time
        update_module_status(db_conn, MODULE_NAME, "success", execution_time=execution_time)
        logger.info(f"Adsorption analysis completed in {execution_time:.2f} seconds.")

        results.update({
            'status': 'success',
            'data': {
                'anchors': anchors,
                'box_z': box_z,
                'adsorbed_ids': adsorbed_ids,
                'rgs': rgs,
                'subsets': subsets,
                'histograms': histograms,
            },
            'metadata': {
                'n_frames': n_total,
                'n_adsorbed_frames': n_adsorbed,
                'adsorption_probability': probability,
                'region': region,
                'bins': bins,
                'is_cyclic': is_cyclic,
            },
        })

    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        logger.error(f"Adsorption analysis failed: {error_msg}", exc_info=True)
        update_module_status(db_conn, MODULE_NAME, "failed",
                             execution_time=time.time() - start_time, error_message=error_msg)
        results['status'] = 'failed'
        results['error'] = error_msg

    finally:
        if owns_conn and db_conn:
            db_conn.close()

    return results
