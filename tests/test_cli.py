import pytest
from PIL import Image

from shadebuilder import dna
from shadebuilder.cli import build_parser, main, shell_params_from_args
from shadebuilder.params import FitterKind, PatternFamily, ShellParams

FAST = ["--segments", "24", "--height-steps", "6"]


def test_lampshade_runs(capsys):
    assert main(["lampshade"] + FAST) == 0
    out = capsys.readouterr().out
    assert "triangles" in out
    assert "watertight      : True" in out


def test_lampshade_export(tmp_path):
    stem = tmp_path / "shade"
    assert main(["lampshade", "--pattern", "fluted", "-o", str(stem)] + FAST) == 0
    assert (tmp_path / "shade.stl").exists()


def test_lampshade_obj(tmp_path):
    assert main(["lampshade", "-o", str(tmp_path / "shade"), "--format", "obj"] + FAST) == 0
    assert (tmp_path / "shade.obj").exists()


def test_invalid_parameter_exits_with_error(capsys):
    assert main(["lampshade", "--wall", "9"] + FAST) == 1
    assert "Error:" in capsys.readouterr().err


def test_lattice_with_fitter_is_refused(capsys):
    assert main(["lampshade", "--pattern", "lattice", "--fitter", "uno"] + FAST) == 1
    assert "fitter" in capsys.readouterr().err


def test_flags_override_design_code():
    code = dna.encode(ShellParams(pattern=PatternFamily.BAMBOO, seed=11))
    args = build_parser().parse_args(["lampshade", "--dna", code, "--seed", "5",
                                      "--fitter", "spider", "--fitter-height", "9"])
    params = shell_params_from_args(args)
    assert params.pattern is PatternFamily.BAMBOO
    assert params.seed == 5
    assert params.fitter.kind is FitterKind.SPIDER
    assert params.fitter.mount_height_from_base == 9.0


def test_print_dna(capsys):
    assert main(["lampshade", "--print-dna", "--seed", "77"] + FAST) == 0
    line = next(s for s in capsys.readouterr().out.splitlines() if s.strip().startswith("dna"))
    assert dna.decode(line.split(":", 1)[1].strip()).seed == 77


def test_dna_subcommand(capsys):
    code = dna.encode(ShellParams(pattern=PatternFamily.CORAL))
    assert main(["dna", code]) == 0
    assert "coral" in capsys.readouterr().out


def test_bad_dna(capsys):
    assert main(["dna", "!!!"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_lithophane(tmp_path):
    src = tmp_path / "photo.png"
    Image.linear_gradient("L").resize((64, 48)).save(src)
    stem = tmp_path / "panel"
    assert main(["lithophane", str(src), "--resolution", "20", "--outline", "circle",
                 "--hole", "-o", str(stem)]) == 0
    assert (tmp_path / "panel.stl").exists()


def test_missing_image(tmp_path, capsys):
    assert main(["lithophane", str(tmp_path / "nope.png")]) == 1
    assert "Error:" in capsys.readouterr().err


def test_unknown_pattern_is_an_argparse_error():
    with pytest.raises(SystemExit):
        main(["lampshade", "--pattern", "nope"])
