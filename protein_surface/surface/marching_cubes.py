"""Convert a 3D scalar field to a trimesh surface via marching cubes."""

from __future__ import annotations
import numpy as np
import trimesh
from skimage.measure import marching_cubes


def mesh_from_field(
    field: np.ndarray,
    origin: np.ndarray,
    spacing: float = 0.7,
    level: float = 0.0,
) -> trimesh.Trimesh:
    """Run marching cubes on *field* and return a trimesh.Trimesh.

    Parameters
    ----------
    field:
        3D scalar field, shape (nx, ny, nz), larger values inside.
    origin:
        World coordinates of voxel index (0,0,0).
    spacing:
        Voxel size in Angstroms; used to convert voxel coords to world coords.
    level:
        Isosurface value.

    A field that never crosses *level* yields an empty mesh.
    """
    if not (float(field.min()) < level < float(field.max())):
        return trimesh.Trimesh(vertices=np.zeros((0, 3)), faces=np.zeros((0, 3), dtype=np.int64),
                               process=False)

    verts, faces, normals, _ = marching_cubes(
        field, level=level, spacing=(spacing, spacing, spacing)
    )
    # marching_cubes returns coords in voxel-scaled space starting at 0;
    # shift by origin
    verts = verts + origin.astype(np.float32)

    mesh = trimesh.Trimesh(vertices=verts, faces=faces, vertex_normals=normals,
                           process=False)
    return mesh
