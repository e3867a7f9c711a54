import os

import pytest
import trimesh

from shadebuilder.assembler import finalize
from shadebuilder.export import FORMATS, export_mesh, export_obj, to_trimesh


@pytest.fixture
def cube(unit_cube):
    return finalize(unit_cube)


def test_to_trimesh_keeps_buffers(cube):
    tm = to_trimesh(cube)
    assert len(tm.vertices) == 8
    assert len(tm.faces) == 12
    assert tm.is_watertight


@pytest.mark.parametrize("fmt", ["stl", "stl-ascii"])
def test_stl_reloads(tmp_path, cube, fmt):
    path = export_mesh(cube, str(tmp_path / "cube"), fmt)
    assert path.endswith(".stl")
    loaded = trimesh.load(path)
    assert len(loaded.faces) == 12
    assert loaded.volume == pytest.approx(1.0)


def test_ascii_stl_is_text(tmp_path, cube):
    path = export_mesh(cube, str(tmp_path / "cube"), "stl-ascii")
    with open(path) as f:
        assert f.readline().startswith("solid")


def test_glb(tmp_path, cube):
    path = export_mesh(cube, str(tmp_path / "cube.glb"), "glb")
    assert path == str(tmp_path / "cube.glb")
    assert os.path.getsize(path) > 0


def test_obj_lines(tmp_path, cube):
    path = export_obj(cube, str(tmp_path / "cube.obj"))
    with open(path) as f:
        lines = f.read().splitlines()
    assert sum(line.startswith("v ") for line in lines) == 8
    assert sum(line.startswith("vn ") for line in lines) == 8
    faces = [line for line in lines if line.startswith("f ")]
    assert len(faces) == 12
    indices = [int(tok.split("//")[0]) for line in faces for tok in line.split()[1:]]
    assert min(indices) == 1
    assert max(indices) == 8


def test_known_extension_is_replaced(tmp_path, cube):
    path = export_mesh(cube, str(tmp_path / "cube.stl"), "obj")
    assert path == str(tmp_path / "cube.obj")


def test_unknown_format(tmp_path, cube):
    assert "ply" not in FORMATS
    with pytest.raises(ValueError):
        export_mesh(cube, str(tmp_path / "cube"), "ply")
