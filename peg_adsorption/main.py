# filename: peg_adsorption/main.py
"""
Main orchestration module for the PEG adsorption analysis.

Runs the adsorption computation for one run folder, the optional plotting
step and the summary, tracking status and products in the run registry.
"""

import os
import sys
import time
import logging
import argparse
import sqlite3
import traceback
from datetime import datetime
from typing import Optional, Dict, Any

from peg_adsorption.core.config import (
    Analysis_version, ADSORPTION_REGION, HISTOGRAM_BINS,
    DEFAULT_STRUCTURE_FILE, DEFAULT_PEG_Z_FILE, DEFAULT_PEG_RG_FILE
)
from peg_adsorption.core import config as core_config_module
from peg_adsorption.core.logging import setup_analysis_logger
from peg_adsorption.core.database import (
    init_db, set_simulation_metadata, store_config_parameters
)
from peg_adsorption.modules.adsorption import run_adsorption_analysis, generate_adsorption_plots
from peg_adsorption.summary import generate_summary_from_database, save_error_summary

logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description=f"PEG Adsorption Analysis v{Analysis_version}. Classifies PEG adsorption on gold "
                    f"per frame and builds radius of gyration histograms for a SINGLE run folder.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    # --- Input files (relative paths are resolved against --folder) ---
    parser.add_argument("-f", "--structure", default=DEFAULT_STRUCTURE_FILE,
                        help=f"Structure snapshot (.gro) with the gold atoms and box size (default: {DEFAULT_STRUCTURE_FILE})")
    parser.add_argument("-z", "--peg-z", dest="peg_z", default=DEFAULT_PEG_Z_FILE,
                        help=f"PEG z coordinate trajectory (.xvg) (default: {DEFAULT_PEG_Z_FILE})")
    parser.add_argument("-r", "--peg-rg", dest="peg_rg", default=DEFAULT_PEG_RG_FILE,
                        help=f"PEG radius of gyration series (.xvg) (default: {DEFAULT_PEG_RG_FILE})")
    parser.add_argument("-c", "--cyclic", action="store_true",
                        help="PEG chains are cyclic (recorded only; does not change the adsorption criterion)")

    # --- Run folder & processing options ---
    parser.add_argument("--folder", default=".", help="Run folder for inputs and outputs (default: current directory)")
    parser.add_argument("--region", type=float, default=ADSORPTION_REGION,
                        help=f"Adsorption distance threshold in nm (default: {ADSORPTION_REGION})")
    parser.add_argument("--bins", type=int, default=HISTOGRAM_BINS,
                        help=f"Number of Rg histogram bins (default: {HISTOGRAM_BINS})")
    parser.add_argument("--reinit-db", action="store_true",
                        help="Reinitialize the registry database (previous tracking is lost)")

    other_group = parser.add_argument_group('Other Options')
    other_group.add_argument("--log_level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                             help="Set the logging level.")
    other_group.add_argument("--no-plots", action="store_true", help="Skip generating plots.")
    other_group.add_argument("--no-progress", action="store_true", help="Hide the per-frame progress bar.")

    args = parser.parse_args(argv)
    if args.bins < 1:
        parser.error("--bins must be a positive integer")
    return args


def _run_analysis_workflow(args) -> Optional[Dict[str, Any]]:
    """
    Run computation, plots and summary for one folder.

    Returns the summary dict on success, None on failure.
    """
    run_dir = os.path.abspath(args.folder)
    run_name = os.path.basename(run_dir)
    db_conn: Optional[sqlite3.Connection] = None
    final_status = "failed"
    summary = None

    try:
        db_conn = init_db(run_dir, force_recreate=args.reinit_db)
        if db_conn is None:
            raise RuntimeError(f"Could not initialize registry database in {run_dir}")

        set_simulation_metadata(db_conn, "run_name", run_name)
        set_simulation_metadata(db_conn, "analysis_start_time", datetime.now().isoformat())
        set_simulation_metadata(db_conn, "structure_file", args.structure)
        set_simulation_metadata(db_conn, "peg_z_file", args.peg_z)
        set_simulation_metadata(db_conn, "peg_rg_file", args.peg_rg)
        set_simulation_metadata(db_conn, "is_cyclic", args.cyclic)
        set_simulation_metadata(db_conn, "analysis_version", Analysis_version)
        set_simulation_metadata(db_conn, "analysis_status", "running")
        store_config_parameters(db_conn, core_config_module)

        logger.info("Running adsorption computation...")
        start_comp = time.time()
        results = run_adsorption_analysis(
            run_dir, args.structure, args.peg_z, args.peg_rg, db_conn=db_conn,
            region=args.region, bins=args.bins, is_cyclic=args.cyclic,
            show_progress=not args.no_progress
        )
        logger.info(f"Adsorption computation finished in {time.time() - start_comp:.2f} sec. "
                    f"Status: {results['status']}")
        if results['status'] != 'success':
            raise RuntimeError(f"Adsorption computation failed: {results.get('error', 'Unknown')}")

        if args.no_plots:
            logger.info("Plot generation skipped (--no-plots).")
        else:
            logger.info("Generating adsorption plots...")
            viz_results = generate_adsorption_plots(run_dir, db_conn=db_conn)
            if viz_results['status'] != 'success':
                # Plots are not critical for the run
                logger.error(f"Adsorption visualization failed: {viz_results.get('error', 'Unknown')}")

        final_status = "success"
        set_simulation_metadata(db_conn, "analysis_status", final_status)
        set_simulation_metadata(db_conn, "analysis_end_time", datetime.now().isoformat())

        logger.info("Generating final analysis summary...")
        summary = generate_summary_from_database(run_dir, db_conn)

    except Exception as e:
        error_message = f"Unhandled Workflow Error: {e}"
        logger.critical(f"{error_message}\n{traceback.format_exc()}")
        final_status = "failed"
        if db_conn:
            set_simulation_metadata(db_conn, "analysis_status", "failed")
            set_simulation_metadata(db_conn, "analysis_error", error_message[:200])
            set_simulation_metadata(db_conn, "analysis_end_time", datetime.now().isoformat())
        save_error_summary(run_dir, run_name, error_message)
        summary = None

    finally:
        if db_conn:
            db_conn.close()
            logger.info("Database connection closed.")

    if final_status == 'success':
        return summary if summary is not None else {}
    return None


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)

    abs_run_dir = os.path.abspath(args.folder)
    if not os.path.isdir(abs_run_dir):
        print(f"ERROR: Run folder does not exist: {abs_run_dir}", file=sys.stderr)
        return 1

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    log_file = setup_analysis_logger(abs_run_dir, os.path.basename(abs_run_dir), log_level)
    if not log_file:
        print(f"Warning: Failed to create log file in {abs_run_dir}", file=sys.stderr)

    logger.info(f"--- PEG adsorption analysis v{Analysis_version} started for {abs_run_dir} ---")
    logger.info(f"Command line arguments: {vars(args)}")
    start_run_time = time.time()

    results = _run_analysis_workflow(args)

    logger.info(f"--- Analysis finished for {abs_run_dir} (Duration: {time.time() - start_run_time:.2f} sec) ---")
    if results is None:
        logger.error("Workflow failed critically.")
        return 1
    logger.info("Workflow completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
