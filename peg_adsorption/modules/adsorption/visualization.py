# filename: peg_adsorption/modules/adsorption/visualization.py
"""
Visualization functions for the PEG adsorption analysis.
Generates plots from the data products registered in the database.
"""

import os
import time
import logging
import sqlite3
from typing import Dict, Optional, Any

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd

from peg_adsorption.core.plotting_style import STYLE, setup_style
from peg_adsorption.core.config import OUTPUT_SUBDIR
from peg_adsorption.core.database import (
    connect_db, register_module, update_module_status, get_product_path, register_product
)
from .output import read_histogram_table

logger = logging.getLogger(__name__)

MODULE_NAME = "adsorption_analysis_visualization"
COMPUTATION_MODULE_NAME = "adsorption_analysis"

setup_style()

# subcategory -> (legend label, STYLE['state_colors'] key)
_HISTOGRAM_SERIES = (
    ("rg_histogram_all", "All frames", "all"),
    ("rg_histogram_adsorbed", "Adsorbed", "adsorbed"),
    ("rg_histogram_nonadsorbed", "Non-adsorbed", "nonadsorbed"),
)


def save_plot(fig, path, dpi=150):
    """Save plot and close the figure."""
    try:
        fig.savefig(path, dpi=dpi, bbox_inches='tight')
        logger.info(f"Saved plot: {path}")
    finally:
        plt.close(fig)


def _plot_rg_histograms(run_dir: str, db_conn: sqlite3.Connection, output_dir: str) -> Optional[str]:
    """Overlay the all / adsorbed / non-adsorbed Rg histograms (counts normalized to probability)."""
    fig, ax = plt.subplots(figsize=(8, 5))
    n_plotted = 0
    for subcategory, legend_label, color_key in _HISTOGRAM_SERIES:
        rel_path = get_product_path(db_conn, "dat", "data", subcategory, COMPUTATION_MODULE_NAME)
        if not rel_path:
            logger.warning(f"No registered product for '{subcategory}'. Skipping series.")
            continue
        df = read_histogram_table(os.path.join(run_dir, rel_path))
        total = df['count'].sum()
        if df.empty or total == 0:
            logger.info(f"Histogram '{subcategory}' is empty. Skipping series.")
            continue
        ax.plot(df['center'], df['count'] / total, label=legend_label,
                color=STYLE['state_colors'][color_key], drawstyle='steps-mid')
        n_plotted += 1

    if n_plotted == 0:
        plt.close(fig)
        logger.warning("No histogram data available to plot.")
        return None

    ax.set_xlabel('Radius of gyration (nm)')
    ax.set_ylabel('Probability')
    ax.legend()
    plot_path = os.path.join(output_dir, "Rg_Histograms.png")
    save_plot(fig, plot_path)
    return plot_path


def _plot_adsorption_timeline(run_dir: str, db_conn: sqlite3.Connection, output_dir: str) -> Optional[str]:
    """Number of adsorbed PEG chains per frame."""
    rel_path = get_product_path(db_conn, "csv", "data", "adsorption_states", COMPUTATION_MODULE_NAME)
    if not rel_path:
        logger.warning("No registered adsorption states CSV. Skipping timeline plot.")
        return None
    df = pd.read_csv(os.path.join(run_dir, rel_path))
    if df.empty:
        logger.warning("Adsorption states CSV is empty. Skipping timeline plot.")
        return None

    fig, ax = plt.subplots(figsize=(12, 3))
    ax.plot(df['Frame'], df['N_Adsorbed'], color=STYLE['state_colors']['adsorbed'],
            linewidth=STYLE['line_width'] * 0.6, drawstyle='steps-post')
    ax.set_xlabel('Frame')
    ax.set_ylabel('Adsorbed PEG chains')
    ax.set_ylim(bottom=0)
    plot_path = os.path.join(output_dir, "Adsorption_Timeline.png")
    save_plot(fig, plot_path)
    return plot_path


def generate_adsorption_plots(run_dir: str, db_conn: Optional[sqlite3.Connection] = None) -> Dict[str, Any]:
    """
    Generate the adsorption plots for a run whose computation step succeeded.

    Returns:
        dict: {'status': 'success'|'failed', 'plots': {name: relative path}, 'error'}
    """
    start_time = time.time()
    owns_conn = db_conn is None
    if owns_conn:
        db_conn = connect_db(run_dir)
        if db_conn is None:
            return {'status': 'failed', 'plots': {}, 'error': 'Database connection failed'}

    register_module(db_conn, MODULE_NAME, "running")
    output_dir = os.path.join(run_dir, OUTPUT_SUBDIR)
    plots: Dict[str, str] = {}

    try:
        os.makedirs(output_dir, exist_ok=True)
        for name, plot_func, description in (
            ("rg_histograms", _plot_rg_histograms, "Rg histograms by adsorption state"),
            ("adsorption_timeline", _plot_adsorption_timeline, "Adsorbed PEG chains per frame"),
        ):
            plot_path = plot_func(run_dir, db_conn, output_dir)
            if plot_path:
                rel_path = os.path.relpath(plot_path, run_dir)
                register_product(db_conn, MODULE_NAME, "png", "plot", rel_path,
                                 subcategory=name, description=description)
                plots[name] = rel_path
    except Exception as e:
        logger.error(f"Adsorption plotting failed: {e}", exc_info=True)
        update_module_status(db_conn, MODULE_NAME, "failed",
                             execution_time=time.time() - start_time, error_message=str(e))
        if owns_conn:
            db_conn.close()
        return {'status': 'failed', 'plots': plots, 'error': str(e)}

    update_module_status(db_conn, MODULE_NAME, "success", execution_time=time.time() - start_time)
    if owns_conn:
        db_conn.close()
    return {'status': 'success', 'plots': plots, 'error': None}
