"""
Mesh export: STL (binary / ASCII) and GLB through trimesh, OBJ by hand.
"""
import logging
import os

import trimesh

from .mesh import Mesh

logger = logging.getLogger(__name__)

FORMATS = ("stl", "stl-ascii", "glb", "obj")


def to_trimesh(mesh: Mesh) -> trimesh.Trimesh:
    """Wrap without trimesh's own merging / repair so the buffers go out as built."""
    return trimesh.Trimesh(
        vertices=mesh.vertices,
        faces=mesh.faces,
        vertex_normals=mesh.normals,
        process=False,
    )


def export_stl(mesh: Mesh, path: str, ascii: bool = False) -> str:
    logger.info(f"[export] Writing {path} …")
    to_trimesh(mesh).export(path, file_type="stl_ascii" if ascii else "stl")
    logger.info(f"[export] Done → {path}")
    return path


def export_glb(mesh: Mesh, path: str) -> str:
    logger.info(f"[export] Writing {path} …")
    to_trimesh(mesh).export(path, file_type="glb")
    logger.info(f"[export] Done → {path}")
    return path


def export_obj(mesh: Mesh, path: str, name: str = "Shade") -> str:
    """Plain OBJ with per-vertex normals.  Importable in Blender / slicers."""
    logger.info(f"[export] Writing {path} …")
    with open(path, "w") as f:
        f.write("# Generated by shadebuilder\n")
        f.write(f"o {name}\n")

        for v in mesh.vertices:
            f.write(f"v {v[0]:.6f} {v[1]:.6f} {v[2]:.6f}\n")
        if mesh.normals is not None:
            for n in mesh.normals:
                f.write(f"vn {n[0]:.6f} {n[1]:.6f} {n[2]:.6f}\n")

        f.write("s 1\n")
        # OBJ is 1-indexed
        for tri in mesh.faces:
            i0, i1, i2 = tri[0] + 1, tri[1] + 1, tri[2] + 1
            if mesh.normals is not None:
                f.write(f"f {i0}//{i0} {i1}//{i1} {i2}//{i2}\n")
            else:
                f.write(f"f {i0} {i1} {i2}\n")
    logger.info(f"[export] Done → {path}")
    return path


def export_mesh(mesh: Mesh, stem: str, fmt: str = "stl") -> str:
    """Write ``mesh`` to ``<stem>.<ext>`` in one of FORMATS; returns the path."""
    if fmt not in FORMATS:
        raise ValueError(f"[export] Unknown format {fmt!r}; choose one of {', '.join(FORMATS)}")
    root, ext = os.path.splitext(stem)
    if ext.lower() in (".stl", ".glb", ".obj"):
        stem = root
    if fmt == "stl":
        return export_stl(mesh, stem + ".stl")
    if fmt == "stl-ascii":
        return export_stl(mesh, stem + ".stl", ascii=True)
    if fmt == "glb":
        return export_glb(mesh, stem + ".glb")
    return export_obj(mesh, stem + ".obj", name=os.path.basename(stem) or "Shade")
