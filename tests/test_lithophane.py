import math

import numpy as np
import pytest

from shadebuilder.assembler import euler_characteristic, is_watertight
from shadebuilder.errors import InvalidParameter
from shadebuilder.lithophane import (apply_mapping, generate_lithophane, grid_shape,
                                     heightfield_faces, sample_bilinear, tone_map)
from shadebuilder.params import BorderSpec, HoleSpec, LithophaneParams, MappingMode

from conftest import gradient_image


def _uniform(value, height=20, width=20):
    return np.full((height, width, 3), value, dtype=np.uint8)


def _front_z(mesh):
    return mesh.vertices[: mesh.vertex_count // 2, 2]


def test_full_rectangle_is_a_closed_slab():
    params = LithophaneParams(resolution=10)
    image = gradient_image(20, 30)
    gx, gy = grid_shape(image.shape, params)
    assert (gx, gy) == (15, 10)

    mesh = generate_lithophane(image, params)
    assert mesh.vertex_count == 2 * gx * gy
    assert is_watertight(mesh)
    assert euler_characteristic(mesh) == 2
    assert mesh.normals.shape == (2 * gx * gy, 3)


def test_circle_with_hole():
    params = LithophaneParams(outline="circle", resolution=40,
                              hole=HoleSpec(enabled=True, size=10.0, offset=0.2))
    mesh = generate_lithophane(gradient_image(40, 40), params)
    n = 40 * 40
    idx = np.arange(n)
    u = (idx % 40) / 39.0
    v = (idx // 40) / 39.0
    in_hole = np.hypot(u - 0.5, v - 0.5 - 0.2) < 0.1
    assert in_hole.any()

    referenced = np.unique(mesh.faces % n)
    assert not np.any(in_hole[referenced])

    # front + back annulus joined by an outer and an inner wall: a torus
    assert is_watertight(mesh)
    assert euler_characteristic(mesh) == 0

    # wall triangles mix front and back vertices; some of them ring the hole
    f = mesh.faces
    walls = f[(f < n).any(axis=1) & (f >= n).any(axis=1)]
    wu, wv = u[walls % n], v[walls % n]
    near_hole = np.hypot(wu - 0.5, wv - 0.7) < 0.1 + 2.0 / 39.0
    assert np.any(near_hole.all(axis=1))


def test_circle_without_hole_is_a_sphere():
    mesh = generate_lithophane(gradient_image(30, 30), LithophaneParams(outline="circle", resolution=30))
    assert is_watertight(mesh)
    assert euler_characteristic(mesh) == 2


def test_badge_is_closed():
    mesh = generate_lithophane(gradient_image(30, 30), LithophaneParams(outline="badge", resolution=30))
    assert is_watertight(mesh)


def test_heart_builds():
    mesh = generate_lithophane(gradient_image(30, 30), LithophaneParams(outline="heart", resolution=30))
    assert mesh.face_count > 0
    assert mesh.vertex_count == 2 * 30 * 30


def test_dark_is_thick_unless_inverted():
    params = LithophaneParams(resolution=5)
    np.testing.assert_allclose(_front_z(generate_lithophane(_uniform(0), params)), params.max_relief)
    np.testing.assert_allclose(_front_z(generate_lithophane(_uniform(255), params)), params.min_relief)
    inverted = LithophaneParams(resolution=5, invert=True)
    np.testing.assert_allclose(_front_z(generate_lithophane(_uniform(0), inverted)), inverted.min_relief)


def test_base_thickness_is_a_floor():
    params = LithophaneParams(resolution=5, min_relief=0.2, base_thickness=1.0)
    np.testing.assert_allclose(_front_z(generate_lithophane(_uniform(255), params)), 1.0)


def test_back_is_flat():
    mesh = generate_lithophane(gradient_image(), LithophaneParams(resolution=8))
    assert np.all(mesh.vertices[mesh.vertex_count // 2:, 2] == 0.0)


def test_panel_size():
    params = LithophaneParams(width=120.0, height=90.0, resolution=6)
    mesh = generate_lithophane(_uniform(100, 30, 40), params)
    back = mesh.vertices[mesh.vertex_count // 2:]
    assert back[:, 0].min() == pytest.approx(-60.0)
    assert back[:, 0].max() == pytest.approx(60.0)
    assert back[:, 1].min() == pytest.approx(-45.0)
    assert back[:, 1].max() == pytest.approx(45.0)


def test_border_band_is_raised():
    params = LithophaneParams(resolution=21, border=BorderSpec(enabled=True, width=0.1, height=3.5))
    mesh = generate_lithophane(_uniform(255, 21, 21), params)
    z = _front_z(mesh).reshape(21, 21)
    assert z[0, 0] == pytest.approx(3.5)
    assert z[10, 0] == pytest.approx(3.5)
    assert z[10, 10] == pytest.approx(params.min_relief)
    assert is_watertight(mesh)


@pytest.mark.parametrize("outline", ["circle", "heart", "badge"])
def test_border_frames_the_outline(outline):
    params = LithophaneParams(outline=outline, resolution=21,
                              border=BorderSpec(enabled=True, width=0.1, height=3.5))
    mesh = generate_lithophane(_uniform(255, 21, 21), params)
    n = 21 * 21
    referenced = np.unique(mesh.faces % n)
    # the corners lie outside every outline but belong to the frame
    for corner in (0, 20, n - 21, n - 1):
        assert corner in referenced
    z = _front_z(mesh).reshape(21, 21)
    assert z[0, 0] == pytest.approx(3.5)
    assert z[10, 10] == pytest.approx(params.min_relief)
    assert is_watertight(mesh)
    assert euler_characteristic(mesh) == 2


def test_border_keeps_the_hole_open():
    params = LithophaneParams(outline="circle", resolution=40,
                              border=BorderSpec(enabled=True, width=0.05, height=3.0),
                              hole=HoleSpec(enabled=True, size=10.0, offset=0.2))
    mesh = generate_lithophane(gradient_image(40, 40), params)
    n = 40 * 40
    idx = np.arange(n)
    in_hole = np.hypot(idx % 40 / 39.0 - 0.5, idx // 40 / 39.0 - 0.7) < 0.1
    referenced = np.unique(mesh.faces % n)
    assert 0 in referenced
    assert not np.any(in_hole[referenced])
    assert is_watertight(mesh)
    assert euler_characteristic(mesh) == 0


def test_projection_does_not_change_triangulation():
    image = gradient_image(20, 20)
    flat = generate_lithophane(image, LithophaneParams(resolution=12))
    curved = generate_lithophane(image, LithophaneParams(outline="curved", resolution=12, curve_radius=50.0))
    cylinder = generate_lithophane(image, LithophaneParams(outline="cylindrical", resolution=12))
    assert np.array_equal(flat.faces, curved.faces)
    assert np.array_equal(flat.faces, cylinder.faces)


def test_curved_panel_wraps_an_arc():
    params = LithophaneParams(outline="curved", resolution=10, curve_radius=50.0)
    mesh = generate_lithophane(_uniform(0, 10, 10), params)
    n = mesh.vertex_count // 2
    front, back = mesh.vertices[:n], mesh.vertices[n:]
    np.testing.assert_allclose(np.hypot(back[:, 0], back[:, 2] + 50.0), 50.0)
    np.testing.assert_allclose(np.hypot(front[:, 0], front[:, 2] + 50.0), 50.0 + params.max_relief)


def test_cylinder_circumference_is_panel_width():
    params = LithophaneParams(outline="cylindrical", width=100.0, resolution=10)
    mesh = generate_lithophane(_uniform(0, 10, 10), params)
    back = mesh.vertices[mesh.vertex_count // 2:]
    np.testing.assert_allclose(np.hypot(back[:, 0], back[:, 2]), 100.0 / (2 * math.pi))


def test_smoothing_keeps_flat_images_flat():
    params = LithophaneParams(resolution=6, smoothing=3)
    np.testing.assert_allclose(_front_z(generate_lithophane(_uniform(0), params)), params.max_relief)


def test_smoothing_softens_edges():
    image = np.zeros((20, 20, 3), dtype=np.uint8)
    image[:, 10:] = 255
    sharp = generate_lithophane(image, LithophaneParams(resolution=20))
    soft = generate_lithophane(image, LithophaneParams(resolution=20, smoothing=3))
    step = lambda m: np.abs(np.diff(_front_z(m).reshape(20, 20), axis=1)).max()
    assert step(soft) < step(sharp)


def test_tone_map_contrast_and_gamma():
    grid = np.array([[[0, 0, 0], [128, 128, 128], [255, 255, 255]]], dtype=np.uint8)
    base = tone_map(grid, LithophaneParams())
    np.testing.assert_allclose(base[0, [0, 2]], [1.0, 0.0], atol=1e-12)
    punchy = tone_map(grid, LithophaneParams(contrast=100.0))
    assert punchy[0, 1] == pytest.approx(base[0, 1])
    bright = tone_map(grid, LithophaneParams(gamma=2.0))
    assert bright[0, 1] < base[0, 1]


def test_sample_bilinear_orientation():
    field = np.array([[1.0, 1.0], [0.0, 0.0]])      # top row 1, bottom row 0
    assert sample_bilinear(field, np.array(0.0), np.array(1.0)) == pytest.approx(1.0)
    assert sample_bilinear(field, np.array(0.0), np.array(0.0)) == pytest.approx(0.0)
    assert sample_bilinear(field, np.array(0.5), np.array(0.25)) == pytest.approx(0.25)


@pytest.mark.parametrize("mode", list(MappingMode))
def test_mapping_keeps_end_points(mode):
    out = apply_mapping(np.array([0.0, 1.0]), mode)
    np.testing.assert_allclose(out, [0.0, 1.0], atol=1e-12)


def test_mapping_curves():
    x = np.array([0.5])
    assert apply_mapping(x, MappingMode.EXPONENTIAL)[0] < 0.5
    assert apply_mapping(x, MappingMode.LOGARITHMIC)[0] > 0.5


def test_empty_mask_yields_no_faces():
    faces = heightfield_faces(np.zeros((4, 5), dtype=bool))
    assert faces.shape == (0, 3)


@pytest.mark.parametrize("kwargs, parameter", [
    ({"min_relief": 3.0, "max_relief": 1.0}, "max_relief"),
    ({"resolution": 1}, "resolution"),
    ({"contrast": 300.0}, "contrast"),
    ({"gamma": 0.0}, "gamma"),
    ({"hole": HoleSpec(enabled=True, size=60.0)}, "hole.size"),
])
def test_invalid_parameters(kwargs, parameter):
    with pytest.raises(InvalidParameter) as info:
        generate_lithophane(_uniform(0), LithophaneParams(**kwargs))
    assert info.value.parameter == parameter
