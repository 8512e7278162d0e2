import pytest


def gro_atom_line(resnr, resname, atomname, atomnr, x, y, z):
    """Format one fixed-column GRO atom line."""
    return f"{resnr:5d}{resname:<5}{atomname:>5}{atomnr:5d}{x:8.3f}{y:8.3f}{z:8.3f}"


def build_gro_text(anchor_z, box=(10.0, 10.0, 100.0), peg_z=(50.0,), title="Gold slab with PEG"):
    """GRO text with one AUS atom per entry of anchor_z (repeats allowed) and some PEG atoms."""
    atoms = []
    for i, z in enumerate(anchor_z):
        atoms.append(gro_atom_line(1, "AUS", "AU", len(atoms) + 1, 0.1 * i, 0.2, z))
    for z in peg_z:
        atoms.append(gro_atom_line(2, "PEG", "C1", len(atoms) + 1, 1.0, 1.0, z))
    box_line = "".join(f"{v:10.5f}" for v in box)
    return "\n".join([title, f"{len(atoms):5d}", *atoms, box_line]) + "\n"


def build_xvg_text(rows, legend="PEG z"):
    """XVG text with GROMACS-style header lines followed by whitespace-separated rows."""
    header = [
        "# This file was created by gmx",
        "# Command line: gmx traj",
        f'@    title "{legend}"',
        '@    xaxis  label "Time (ps)"',
        "@TYPE xy",
    ]
    body = ["  ".join(str(v) for v in row) for row in rows]
    return "\n".join(header + body) + "\n"


@pytest.fixture
def adsorption_run(tmp_path):
    """
    Run folder with anchors at z = 10 and 20 nm (box z = 100 nm) and a
    3 frame / 2 chain trajectory:
      frame 0: [10.3, 50.0] -> chain 0 adsorbed
      frame 1: [30.0, 60.0] -> none adsorbed
      frame 2: [9.5, 20.5]  -> both adsorbed
    """
    run_dir = tmp_path / "R1"
    run_dir.mkdir()
    (run_dir / "md-run.gro").write_text(build_gro_text([10.0, 10.0, 20.0, 20.0]))
    (run_dir / "peg_z.xvg").write_text(build_xvg_text([
        (0, 10.3, 50.0),
        (10, 30.0, 60.0),
        (20, 9.5, 20.5),
    ]))
    (run_dir / "rg_peg.xvg").write_text(build_xvg_text([
        (0, 1.2, 0.8, 0.7, 0.6),
        (10, 1.8, 1.1, 1.0, 0.9),
        (20, 1.4, 0.9, 0.8, 0.7),
    ], legend="Radius of gyration"))
    return run_dir
