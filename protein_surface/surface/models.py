"""Surface options and the mesh/render objects produced by the engine."""

from __future__ import annotations
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from protein_surface.errors import InputError
from protein_surface.structure.models import Structure

QUALITY_LEVELS = ("auto", "highest", "higher", "high", "medium", "low", "lower", "lowest")
GRANULARITIES = ("structure", "chain")

# Voxel size (Angstroms) used for each quality level
_GRID_SPACING = {
    "highest": 0.35,
    "higher": 0.5,
    "high": 0.7,
    "medium": 0.9,
    "low": 1.2,
    "lower": 1.6,
    "lowest": 2.0,
}
# (max atom count, quality) thresholds for quality="auto"
_AUTO_QUALITY = ((5_000, "high"), (50_000, "medium"), (200_000, "low"))


@dataclass(frozen=True)
class SurfaceOptions:
    probe_radius: float = 1.4
    quality: str = "high"
    granularity: str = "structure"

    def __post_init__(self) -> None:
        if not self.probe_radius > 0:
            raise InputError(f"Probe radius must be positive, got {self.probe_radius}")
        if self.quality not in QUALITY_LEVELS:
            raise InputError(
                f"Unknown quality {self.quality!r}. Use one of: {', '.join(QUALITY_LEVELS)}"
            )
        if self.granularity not in GRANULARITIES:
            raise InputError(
                f"Unknown granularity {self.granularity!r}. Use 'structure' or 'chain'."
            )

    def resolved_quality(self, atom_count: int) -> str:
        if self.quality != "auto":
            return self.quality
        for limit, quality in _AUTO_QUALITY:
            if atom_count <= limit:
                return quality
        return "lowest"

    def grid_spacing(self, atom_count: int) -> float:
        return _GRID_SPACING[self.resolved_quality(atom_count)]


@dataclass
class Mesh:
    """One rendered surface mesh.

    ``group_indices`` may be longer than the real number of vertices;
    ``vertex_count`` (when known) is the count the engine declared.
    """
    positions: np.ndarray                  # flat, 3 floats per vertex
    group_indices: np.ndarray              # group index local to the mesh's unit
    vertex_count: int | None = None
    faces: np.ndarray | None = None        # (M, 3) vertex indices
    normals: np.ndarray | None = None      # flat, 3 floats per vertex
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    label: str = "surface"

    @property
    def vertices(self) -> np.ndarray:
        n = self.vertex_count if self.vertex_count is not None else len(self.positions) // 3
        return np.asarray(self.positions[:3 * n]).reshape(-1, 3)


class RenderObject(NamedTuple):
    type: str        # "mesh", "points", "lines", ...
    values: object


@dataclass
class Surface:
    structure: Structure
    meshes: list[Mesh]
    granularity: str | None = None    # as requested from the engine; None if unknown
