import pytest

from peg_adsorption.modules.adsorption.classification import AnchorSet, InputShapeError
from peg_adsorption.modules.adsorption.structure import (
    parse_box_line,
    is_anchor_line,
    extract_anchor_z,
    parse_structure_text,
    read_structure_file,
)
from conftest import build_gro_text, gro_atom_line


def test_parse_structure_text_basic():
    text = build_gro_text([10.0, 10.0, 10.0, 20.0, 20.0], box=(5.0, 5.0, 100.0))
    anchors, box_z = parse_structure_text(text)
    assert anchors == AnchorSet(10.0, 20.0)
    assert box_z == pytest.approx(100.0)


def test_parse_structure_text_unsorted_layers():
    text = build_gro_text([7.25, 1.5, 7.25, 1.5], box=(4.0, 4.0, 9.0))
    anchors, box_z = parse_structure_text(text)
    assert (anchors.lower, anchors.upper) == (1.5, 7.25)
    assert box_z == pytest.approx(9.0)


def test_duplicated_single_anchor_is_input_shape_error():
    text = build_gro_text([10.0, 10.0])
    with pytest.raises(InputShapeError, match="At least two distinct anchor positions"):
        parse_structure_text(text)


def test_no_anchor_atoms_is_input_shape_error():
    text = build_gro_text([], peg_z=(1.0, 2.0))
    with pytest.raises(InputShapeError):
        parse_structure_text(text)


def test_peg_atoms_are_ignored():
    text = build_gro_text([10.0, 20.0], peg_z=(5.0, 15.0, 30.0))
    anchors, _ = parse_structure_text(text)
    assert anchors == AnchorSet(10.0, 20.0)


def test_title_line_mentioning_label_is_ignored():
    # A title that would parse as an AUS record with z = 99.999
    title = gro_atom_line(1, "AUS", "AU", 1, 0.0, 0.0, 99.999)
    text = build_gro_text([10.0, 20.0], title=title)
    anchors, _ = parse_structure_text(text)
    assert anchors == AnchorSet(10.0, 20.0)


def test_is_anchor_line_matches_residue_or_atom_name():
    assert is_anchor_line(gro_atom_line(1, "AUS", "AU", 1, 0, 0, 1.0))
    assert is_anchor_line(gro_atom_line(1, "SURF", "AUS", 1, 0, 0, 1.0))
    assert not is_anchor_line(gro_atom_line(1, "PEG", "C1", 1, 0, 0, 1.0))
    assert is_anchor_line(gro_atom_line(1, "GLD", "AU", 1, 0, 0, 1.0), label="GLD")


def test_extract_anchor_z_dedups_on_text():
    lines = [gro_atom_line(1, "AUS", "AU", i, 0.1 * i, 0, z) for i, z in enumerate([3.0, 3.0, 1.0, 3.0])]
    assert extract_anchor_z(lines) == [1.0, 3.0]


def test_extract_anchor_z_keeps_zero():
    lines = [gro_atom_line(1, "AUS", "AU", 1, 0, 0, 0.0), gro_atom_line(1, "AUS", "AU", 2, 0, 0, 2.0)]
    assert extract_anchor_z(lines) == [0.0, 2.0]


def test_parse_box_line_short_is_error():
    with pytest.raises(InputShapeError, match="less than 3 elements"):
        parse_box_line("   5.00000   5.00000")


def test_parse_box_line_non_numeric_is_error():
    with pytest.raises(InputShapeError, match="not numeric"):
        parse_box_line("   5.0  5.0  abc")


def test_parse_box_line_triclinic():
    box = parse_box_line(" 5.0 5.0 9.0 0.0 0.0 0.0 0.0 0.0 0.0")
    assert box[2] == 9.0
    assert len(box) == 9


def test_missing_box_line_is_error():
    text = build_gro_text([10.0, 20.0], box=(5.0, 5.0))
    with pytest.raises(InputShapeError):
        parse_structure_text(text)


def test_nonpositive_box_z_is_error():
    text = build_gro_text([10.0, 20.0], box=(5.0, 5.0, 0.0))
    with pytest.raises(InputShapeError, match="positive"):
        parse_structure_text(text)


def test_too_short_file_is_error():
    with pytest.raises(InputShapeError, match="expected title"):
        parse_structure_text("title\n  0\n")


def test_read_structure_file(tmp_path):
    path = tmp_path / "md-run.gro"
    path.write_text(build_gro_text([2.0, 8.0], box=(3.0, 3.0, 12.0)))
    anchors, box_z = read_structure_file(str(path))
    assert anchors == AnchorSet(2.0, 8.0)
    assert box_z == pytest.approx(12.0)


def test_read_structure_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_structure_file(str(tmp_path / "nope.gro"))
