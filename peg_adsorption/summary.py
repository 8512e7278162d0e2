# filename: peg_adsorption/summary.py
"""
Summary generation for PEG adsorption analysis results.

Collects run metadata, module status, metrics and product paths from the
registry database and writes them to 'analysis_summary.json' in the run folder.
"""

import os
import json
import logging
import sqlite3
from datetime import datetime
from typing import Dict, Any, Optional

from peg_adsorption.core.config import Analysis_version
from peg_adsorption.core.database import (
    get_all_simulation_metadata, list_modules, get_all_metrics, get_all_products,
    get_config_parameters
)
from peg_adsorption.core.utils import clean_json_data

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = 'analysis_summary.json'


def generate_summary_from_database(run_dir: str, db_conn: sqlite3.Connection) -> Dict[str, Any]:
    """
    Build the run summary from the registry and save it as JSON.

    Returns:
        dict: The summary (empty dict if the registry could not be read).
    """
    metadata = get_all_simulation_metadata(db_conn)
    if not metadata:
        logger.error("No simulation metadata found in database; cannot build summary.")
        return {}

    modules = {
        m['module_name']: {
            'status': m['status'],
            'execution_time': m['execution_time'],
            'error_message': m['error_message'],
        }
        for m in list_modules(db_conn)
    }
    metrics = {name: {'value': info['value'], 'units': info['units']}
               for name, info in get_all_metrics(db_conn).items()}
    products = {}
    for product in get_all_products(db_conn):
        key = product['subcategory'] or os.path.basename(product['relative_path'])
        products[key] = product['relative_path']

    summary = {
        'RunName': metadata.get('run_name', os.path.basename(run_dir)),
        'RunPath': run_dir,
        'AnalysisStatus': metadata.get('analysis_status', 'unknown'),
        'AnalysisScriptVersion': Analysis_version,
        'AnalysisTimestamp': datetime.now().isoformat(),
        'metadata': metadata,
        'modules': modules,
        'metrics': metrics,
        'products': products,
        'config': {name: p['value'] for name, p in get_config_parameters(db_conn).items()},
    }

    summary = clean_json_data(summary)
    summary_path = os.path.join(run_dir, SUMMARY_FILENAME)
    try:
        with open(summary_path, 'w') as f_json:
            json.dump(summary, f_json, indent=4)
        logger.info(f"Saved analysis summary to {summary_path}")
    except OSError as e:
        logger.error(f"Failed to save summary JSON to {summary_path}: {e}")
    return summary


def save_error_summary(run_dir: str, run_name: str, error_message: str) -> Optional[str]:
    """Write a minimal summary JSON when the analysis fails critically."""
    summary_path = os.path.join(run_dir, SUMMARY_FILENAME)
    error_summary = {
        'RunName': run_name,
        'RunPath': run_dir,
        'AnalysisStatus': f'FAILED: {str(error_message)[:150]}',
        'AnalysisScriptVersion': Analysis_version,
        'AnalysisTimestamp': datetime.now().isoformat(),
    }
    try:
        with open(summary_path, 'w') as f_json:
            json.dump(clean_json_data(error_summary), f_json, indent=4)
        logger.info(f"Saved error status to {summary_path}")
        return summary_path
    except OSError as e:
        logger.error(f"Failed to save error summary JSON to {summary_path}: {e}")
        return None
