import os

import numpy as np
import pytest

from peg_adsorption.core.database import (
    connect_db, init_db, get_module_status, get_metric_value, get_product_path, get_all_products,
    list_modules
)
from peg_adsorption.modules.adsorption.classification import InputShapeError
from peg_adsorption.modules.adsorption.computation import (
    MODULE_NAME, SUBSET_ALL, SUBSET_ADSORBED, SUBSET_NONADSORBED,
    partition_by_adsorption, run_adsorption_analysis,
)
from peg_adsorption.modules.adsorption.output import read_histogram_table
from conftest import build_gro_text, build_xvg_text


def test_partition_by_adsorption():
    subsets = partition_by_adsorption([1.2, 1.8, 1.4], [(0,), (), (0, 1)])
    assert np.allclose(subsets[SUBSET_ALL], [1.2, 1.8, 1.4])
    assert np.allclose(subsets[SUBSET_ADSORBED], [1.2, 1.4])
    assert np.allclose(subsets[SUBSET_NONADSORBED], [1.8])


def test_partition_is_complete_and_disjoint():
    rng = np.random.default_rng(3)
    rgs = rng.uniform(1.0, 2.0, size=40)
    ids = [(0,) if x > 0.5 else () for x in rng.uniform(size=40)]
    subsets = partition_by_adsorption(rgs, ids)
    assert len(subsets[SUBSET_ADSORBED]) + len(subsets[SUBSET_NONADSORBED]) == len(subsets[SUBSET_ALL])
    assert np.isclose(subsets[SUBSET_ADSORBED].sum() + subsets[SUBSET_NONADSORBED].sum(), rgs.sum())


def test_partition_length_mismatch():
    with pytest.raises(InputShapeError, match="Rg series has 2 values"):
        partition_by_adsorption([1.0, 2.0], [(), (), ()])


def test_run_adsorption_analysis_end_to_end(adsorption_run):
    run_dir = str(adsorption_run)
    results = run_adsorption_analysis(run_dir, show_progress=False)

    assert results['status'] == 'success', results['error']
    assert results['error'] is None
    assert results['data']['adsorbed_ids'] == [(0,), (), (0, 1)]
    assert results['metadata']['n_frames'] == 3
    assert results['metadata']['n_adsorbed_frames'] == 2
    assert results['metadata']['adsorption_probability'] == pytest.approx(2 / 3)

    out_dir = os.path.join(run_dir, "adsorption_analysis")
    for name in ("rgHistAll.dat", "rgHistAdsorped.dat", "rgHistNondsorped.dat",
                 "adsorpedPegIDs.dat", "Adsorption_States.csv"):
        assert os.path.isfile(os.path.join(out_dir, name)), name

    hists = results['data']['histograms']
    assert hists[SUBSET_ALL].total == 3
    assert hists[SUBSET_ADSORBED].total == 2
    assert len(hists[SUBSET_ALL]) == 50
    # Single non-adsorbed frame collapses to one bin at its value
    assert list(hists[SUBSET_NONADSORBED].counts) == [1]
    assert hists[SUBSET_NONADSORBED].centers[0] == pytest.approx(1.8)

    df_all = read_histogram_table(os.path.join(out_dir, "rgHistAll.dat"))
    assert df_all['count'].sum() == 3

    with open(os.path.join(out_dir, "adsorpedPegIDs.dat")) as f:
        rows = [line.split() for line in f]
    assert rows == [['0', '1.2', '0'], ['1', '1.8'], ['2', '1.4', '0', '1']]


def test_run_adsorption_analysis_registers_products_and_metrics(adsorption_run):
    run_dir = str(adsorption_run)
    results = run_adsorption_analysis(run_dir, show_progress=False)
    assert results['status'] == 'success'

    conn = connect_db(run_dir)
    try:
        assert get_module_status(conn, MODULE_NAME) == 'success'
        assert get_metric_value(conn, "Adsorption_Probability", MODULE_NAME) == pytest.approx(200 / 3)
        assert get_metric_value(conn, "Adsorbed_Frames", MODULE_NAME) == 2
        assert get_metric_value(conn, "Total_Frames", MODULE_NAME) == 3
        assert get_metric_value(conn, "Mean_Rg_Adsorbed", MODULE_NAME) == pytest.approx(1.3)
        assert get_metric_value(conn, "Anchor_Z_Lower", MODULE_NAME) == pytest.approx(10.0)
        assert get_metric_value(conn, "Anchor_Z_Upper", MODULE_NAME) == pytest.approx(20.0)
        assert get_metric_value(conn, "Box_Z", MODULE_NAME) == pytest.approx(100.0)
        rel = get_product_path(conn, "dat", "data", "rg_histogram_nonadsorbed", MODULE_NAME)
        assert rel == os.path.join("adsorption_analysis", "rgHistNondsorped.dat")
        assert get_product_path(conn, "csv", "data", "adsorption_states", MODULE_NAME)
    finally:
        conn.close()


def test_run_adsorption_analysis_with_open_connection(adsorption_run):
    run_dir = str(adsorption_run)
    conn = init_db(run_dir)
    try:
        results = run_adsorption_analysis(run_dir, db_conn=conn, show_progress=False)
        assert results['status'] == 'success'
        # Connection is still usable after the call
        assert get_module_status(conn, MODULE_NAME) == 'success'
    finally:
        conn.close()


def test_run_adsorption_analysis_custom_region(adsorption_run):
    # Frame 2 chains sit 0.5 nm outside the band; frame 0 chain 0 is inside it
    results = run_adsorption_analysis(str(adsorption_run), region=0.1, show_progress=False)
    assert results['status'] == 'success'
    assert results['data']['adsorbed_ids'] == [(0,), (), ()]
    assert results['metadata']['adsorption_probability'] == pytest.approx(1 / 3)
    assert results['data']['histograms'][SUBSET_ADSORBED].total == 1


def test_run_adsorption_analysis_absolute_input_paths(adsorption_run, tmp_path):
    other = tmp_path / "inputs"
    other.mkdir()
    z_path = other / "z.xvg"
    z_path.write_text(build_xvg_text([(0, 50.0, 50.0), (10, 50.0, 50.0), (20, 50.0, 50.0)]))
    results = run_adsorption_analysis(str(adsorption_run), z_file=str(z_path), show_progress=False)
    assert results['status'] == 'success'
    assert results['metadata']['n_adsorbed_frames'] == 0


def test_run_adsorption_analysis_duplicate_anchor_fails(adsorption_run):
    run_dir = str(adsorption_run)
    (adsorption_run / "md-run.gro").write_text(build_gro_text([10.0, 10.0]))
    results = run_adsorption_analysis(run_dir, show_progress=False)

    assert results['status'] == 'failed'
    assert "InputShapeError" in results['error']
    assert not os.path.exists(os.path.join(run_dir, "adsorption_analysis", "rgHistAll.dat"))

    conn = connect_db(run_dir)
    try:
        assert get_module_status(conn, MODULE_NAME) == 'failed'
        module = [m for m in list_modules(conn) if m['module_name'] == MODULE_NAME][0]
        assert "anchor" in module['error_message']
    finally:
        conn.close()


def test_run_adsorption_analysis_rg_length_mismatch_fails(adsorption_run):
    (adsorption_run / "rg_peg.xvg").write_text(build_xvg_text([(0, 1.2, 0, 0, 0)]))
    results = run_adsorption_analysis(str(adsorption_run), show_progress=False)
    assert results['status'] == 'failed'
    assert "Rg series has 1 values" in results['error']


def test_run_adsorption_analysis_missing_input_fails(adsorption_run):
    os.remove(adsorption_run / "peg_z.xvg")
    results = run_adsorption_analysis(str(adsorption_run), show_progress=False)
    assert results['status'] == 'failed'
    assert "FileNotFoundError" in results['error']


def test_failed_rerun_drops_previous_results(adsorption_run):
    run_dir = str(adsorption_run)
    out_dir = os.path.join(run_dir, "adsorption_analysis")
    assert run_adsorption_analysis(run_dir, show_progress=False)['status'] == 'success'
    assert os.path.isfile(os.path.join(out_dir, "rgHistAll.dat"))

    (adsorption_run / "rg_peg.xvg").write_text(build_xvg_text([(0, 1.2, 0, 0, 0)]))
    results = run_adsorption_analysis(run_dir, show_progress=False)
    assert results['status'] == 'failed'

    conn = connect_db(run_dir)
    try:
        assert get_module_status(conn, MODULE_NAME) == 'failed'
        assert get_metric_value(conn, "Adsorption_Probability") is None
        assert get_product_path(conn, "dat", "data", "rg_histogram_all", MODULE_NAME) is None
        assert get_all_products(conn, module_name=MODULE_NAME) == []
    finally:
        conn.close()
    for name in ("rgHistAll.dat", "rgHistAdsorped.dat", "rgHistNondsorped.dat",
                 "adsorpedPegIDs.dat", "Adsorption_States.csv"):
        assert not os.path.exists(os.path.join(out_dir, name)), name


def test_rerun_replaces_results(adsorption_run):
    run_dir = str(adsorption_run)
    assert run_adsorption_analysis(run_dir, show_progress=False)['status'] == 'success'
    assert run_adsorption_analysis(run_dir, region=0.1, show_progress=False)['status'] == 'success'

    conn = connect_db(run_dir)
    try:
        assert get_metric_value(conn, "Adsorption_Probability", MODULE_NAME) == pytest.approx(100 / 3)
        assert len(get_all_products(conn, module_name=MODULE_NAME)) == 5
    finally:
        conn.close()
