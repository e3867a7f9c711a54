import numpy as np
import pytest

from shadebuilder import config
from shadebuilder.assembler import euler_characteristic, is_watertight
from shadebuilder.errors import UnsupportedFamilyCombination
from shadebuilder.lattice import (anchor_grid, build_lattice, lattice_edges, lattice_segments,
                                  strut_mesh, weave_ends)
from shadebuilder.mesh import Mesh, signed_volume
from shadebuilder.params import FitterSpec, LATTICE_PATTERNS, PatternFamily, ShellParams
from shadebuilder.pipeline import generate_lampshade
from shadebuilder.silhouette import profile_radius

S, L = 12, 8
EXPECTED_STRUTS = {
    PatternFamily.LATTICE_VERTICAL: S * L + 2 * S,
    PatternFamily.LATTICE_TRIANGULAR: 2 * S * L + S * (L + 1),
    PatternFamily.LATTICE_HONEYCOMB: S * L // 2 + S * (L + 1),
    PatternFamily.LATTICE: 2 * S * L + 2 * S,
    PatternFamily.LATTICE_STAR: 4 * S * L + S * (L + 1),
    PatternFamily.LATTICE_WEAVE: 2 * S * L + S * (L + 1),
}


@pytest.mark.parametrize("family", sorted(LATTICE_PATTERNS, key=lambda f: f.value))
def test_connectivity_rule_sizes(family):
    edges = lattice_edges(family, S, L)
    assert len(edges) == EXPECTED_STRUTS[family]
    # no strut is emitted twice
    assert len(np.unique(np.sort(edges, axis=1), axis=0)) == len(edges)


@pytest.mark.parametrize("family", sorted(LATTICE_PATTERNS, key=lambda f: f.value))
def test_every_strut_is_a_closed_prism(family):
    p = ShellParams(pattern=family, grid_density=S, lattice_layers=L)
    mesh = build_lattice(p)
    n = EXPECTED_STRUTS[family]
    k = config.STRUT_SIDES
    assert mesh.vertex_count == n * 2 * k
    assert mesh.face_count == n * (2 * k + 2 * (k - 2))
    assert is_watertight(mesh)
    # independent solids: one sphere per strut
    assert euler_characteristic(mesh) == 2 * n


def test_anchors_lie_on_the_evaluated_surface():
    p = ShellParams(pattern="lattice_triangular", silhouette="bell", grid_density=10, lattice_layers=5)
    anchors = anchor_grid(p)
    assert anchors.shape == (11, 6, 3)
    t = anchors[0, :, 2] / p.height
    expected = profile_radius(t, p)
    radii = np.hypot(anchors[..., 0], anchors[..., 1])
    np.testing.assert_allclose(radii, np.broadcast_to(expected, radii.shape), rtol=1e-12)
    # the closing column sits on top of the first one
    np.testing.assert_allclose(anchors[-1], anchors[0], atol=1e-9)


def test_weave_crossings_pass_over_and_under():
    p = ShellParams(pattern="lattice_weave", silhouette="straight", top_radius=6, bottom_radius=6,
                    grid_density=8, lattice_layers=4, strut_radius=0.2)
    anchors = anchor_grid(p)
    np.testing.assert_allclose(np.hypot(anchors[..., 0], anchors[..., 1]), 6.0)

    stride = 5
    edges = np.array([
        [0, stride + 1],            # cell (0, 0) up
        [stride, 1],                # cell (0, 0) down
        [stride, 2 * stride + 1],   # cell (1, 0) up
        [0, stride],                # ring
    ])
    p0, p1 = weave_ends(anchors.reshape(-1, 3), edges, 4, 0.2)
    r0 = np.hypot(p0[:, 0], p0[:, 1])
    r1 = np.hypot(p1[:, 0], p1[:, 1])
    np.testing.assert_allclose(r0, [6.2, 5.8, 5.8, 6.0])
    np.testing.assert_allclose(r1, r0)
    np.testing.assert_allclose(p0[:, 2], anchors.reshape(-1, 3)[edges[:, 0], 2])


def test_parity_families_use_even_columns():
    assert lattice_segments(ShellParams(pattern="lattice_honeycomb", grid_density=7)) == 8
    assert lattice_segments(ShellParams(pattern="lattice_weave", grid_density=9)) == 10
    assert lattice_segments(ShellParams(pattern="lattice", grid_density=9)) == 9


def test_strut_geometry():
    mesh = strut_mesh(np.array([[0.0, 0.0, 0.0]]), np.array([[0.0, 0.0, 2.0]]), radius=0.5,
                      sides=6, overlap=0.5)
    assert signed_volume(mesh) > 0
    z = mesh.vertices[:, 2]
    assert z.min() == pytest.approx(-0.25)
    assert z.max() == pytest.approx(2.25)
    np.testing.assert_allclose(np.hypot(mesh.vertices[:, 0], mesh.vertices[:, 1]), 0.5)


def test_struts_along_any_direction_are_outward(rng):
    p0 = rng.normal(size=(50, 3))
    p1 = p0 + rng.normal(size=(50, 3))
    p1[0] = p0[0] + [1e-3, 0.0, 5.0]          # almost vertical
    mesh = strut_mesh(p0, p1, radius=0.1)
    k = config.STRUT_SIDES
    per_faces = 2 * k + 2 * (k - 2)
    for s in range(50):
        part = Mesh(mesh.vertices[s * 2 * k:(s + 1) * 2 * k],
                    mesh.faces[s * per_faces:(s + 1) * per_faces] - s * 2 * k)
        assert signed_volume(part) > 0


def test_zero_length_struts_are_skipped():
    p = np.array([[1.0, 2.0, 3.0]])
    assert strut_mesh(p, p, radius=0.1).is_empty


def test_unknown_family_has_no_rule():
    with pytest.raises(ValueError):
        lattice_edges(PatternFamily.RIBBED_DRUM, S, L)


@pytest.mark.parametrize("extra", [
    {"fitter": FitterSpec(kind="spider")},
    {"internal_ribs": 4},
    {"rim_height": 1.0},
])
def test_wireframe_cannot_carry_solid_attachments(extra):
    p = ShellParams(pattern="lattice_star", **extra)
    with pytest.raises(UnsupportedFamilyCombination):
        generate_lampshade(p)


def test_lattice_lampshade_end_to_end():
    mesh = generate_lampshade(ShellParams(pattern="lattice", silhouette="hourglass"))
    assert is_watertight(mesh)
    assert mesh.normals.shape == mesh.vertices.shape
    r = np.hypot(mesh.vertices[:, 0], mesh.vertices[:, 1])
    assert r.max() < 8.0 + 2 * ShellParams().effective_strut_radius
    # struts poke below the base by at most their radius plus the end overlap
    reach = (1.0 + config.STRUT_END_OVERLAP) * ShellParams().effective_strut_radius
    assert -reach - 1e-9 <= mesh.vertices[:, 2].min() < 0.0
