import numpy as np
import pandas as pd

from peg_adsorption.modules.adsorption.histogram import Histogram, calc_histogram
from peg_adsorption.modules.adsorption.output import (
    histogram_filename,
    format_number,
    format_histogram,
    format_classification,
    write_histogram,
    write_classification,
    build_states_dataframe,
    write_states_csv,
    read_histogram_table,
)


def test_histogram_filename():
    assert histogram_filename("All") == "rgHistAll.dat"
    assert histogram_filename("Nondsorped") == "rgHistNondsorped.dat"


def test_format_histogram_columns():
    hist = Histogram(np.array([3, 0]), np.array([0.5, 1.5]))
    assert format_histogram(hist) == "0.5" + " " * 15 + " 3\n" + "1.5" + " " * 15 + " 0\n"


def test_format_classification_columns():
    text = format_classification([(0,), (), (0, 11)], [1.5, 2.25, 1.0])
    assert text.splitlines() == [
        "0      1.5       0",
        "1      2.25    ",
        "2      1         0 11",
    ]


def test_write_and_read_histogram(tmp_path):
    hist = calc_histogram([1.0, 1.5, 2.0, 2.0], 3)
    path = write_histogram(hist, "All", str(tmp_path))
    assert path.endswith("rgHistAll.dat")
    df = read_histogram_table(path)
    assert list(df['count']) == list(hist.counts)
    assert np.allclose(df['center'], hist.centers)


def test_read_empty_histogram(tmp_path):
    path = write_histogram(calc_histogram([], 50), "Adsorped", str(tmp_path))
    df = read_histogram_table(path)
    assert df.empty
    assert list(df.columns) == ['center', 'count']


def test_write_classification(tmp_path):
    path = write_classification([(1,), ()], [1.25, 1.5], str(tmp_path))
    lines = open(path).read().splitlines()
    assert len(lines) == 2
    assert lines[0].split() == ['0', '1.25', '1']
    assert lines[1].split() == ['1', '1.5']


def test_states_dataframe_and_csv(tmp_path):
    df = build_states_dataframe([(0,), (), (0, 1)], [1.2, 1.8, 1.4])
    assert list(df['N_Adsorbed']) == [1, 0, 2]
    assert list(df['Adsorbed']) == [True, False, True]
    assert list(df['Adsorbed_PEG_IDs']) == ["0", "", "0 1"]

    path = write_states_csv([(0,), (), (0, 1)], [1.2, 1.8, 1.4], str(tmp_path))
    df_read = pd.read_csv(path)
    assert list(df_read['Frame']) == [0, 1, 2]
    assert np.allclose(df_read['Rg (nm)'], [1.2, 1.8, 1.4])


def test_format_number_matches_plain_number_text():
    assert format_number(2.0) == "2"
    assert format_number(np.float64(-3.0)) == "-3"
    assert format_number(1.25) == "1.25"
    assert format_number(0.1 + 0.2) == "0.30000000000000004"


def test_format_histogram_whole_number_center():
    hist = Histogram(np.array([4]), np.array([2.0]))
    assert format_histogram(hist) == "2" + " " * 17 + " 4\n"
