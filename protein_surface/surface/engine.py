"""Stateful structure/surface engine.

The engine owns everything between raw structure bytes and rendered meshes:
download, parsing, assembly building, chain filtering and molecular-surface
meshing. It keeps the state of the reference currently being processed so it
can be exported or snapshotted, and must be :meth:`reset` between references.
"""

from __future__ import annotations
import json
from pathlib import Path
from typing import Iterable
from urllib.request import urlopen

import numpy as np
from scipy.spatial import cKDTree
from tqdm import tqdm

from protein_surface import __version__
from protein_surface.errors import EngineContractError
from protein_surface.io.bcif_parser import parse_bcif
from protein_surface.io.cif_parser import parse_cif_text
from protein_surface.output.obj import write_mtl, write_obj
from protein_surface.structure.assembly import build_structure
from protein_surface.structure.chains import select_chains
from protein_surface.structure.loader import models_from_block
from protein_surface.structure.models import Model, Structure
from protein_surface.surface.marching_cubes import mesh_from_field
from protein_surface.surface.models import Mesh, RenderObject, SurfaceOptions
from protein_surface.surface.ses_grid import build_ses_grid, vdw_radii

_UNIT_COLOURS = [
    "#e63946", "#457b9d", "#2a9d8f", "#f4a261", "#8d99ae",
    "#e9c46a", "#6a4c93", "#90be6d", "#f28482", "#577590",
]
_STRUCTURE_COLOUR = "#d9d9d9"


def _rgb(hex_colour: str) -> tuple[float, float, float]:
    h = hex_colour.lstrip("#")
    return tuple(int(h[k:k + 2], 16) / 255 for k in (0, 2, 4))  # type: ignore[return-value]


class SurfaceEngine:
    """Single-reference surface engine; call :meth:`reset` between references."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.reset()

    def reset(self) -> None:
        """Drop every piece of state left by the previous reference."""
        self.url: str | None = None
        self.structure: Structure | None = None
        self.component: Structure | None = None
        self.options: SurfaceOptions | None = None
        self.render_objects: list[RenderObject] = []

    # --- loading -----------------------------------------------------------

    def download(self, url: str) -> bytes:
        if self.verbose:
            print(f"  Downloading {url}")
        with urlopen(url) as response:
            data = response.read()
        self.url = url
        return data

    def parse(self, data: bytes, binary: bool) -> list[Model]:
        """Parse structure bytes into a trajectory (one Model per model number)."""
        block = parse_bcif(data) if binary else parse_cif_text(data.decode("utf-8", errors="replace"))
        models = models_from_block(block)
        if self.verbose:
            print(f"  {len(models)} model(s), {len(models[0].atoms)} atoms in model 0")
        return models

    def build_structure(self, model: Model, assembly_id: str | None = None) -> Structure:
        self.structure = build_structure(model, assembly_id)
        return self.structure

    def select_chains(self, structure: Structure, label_asym_ids: Iterable[str]) -> Structure:
        self.component = select_chains(structure, label_asym_ids)
        return self.component

    # --- meshing -----------------------------------------------------------

    def _mesh(self, coords: np.ndarray, elements: np.ndarray, options: SurfaceOptions,
              spacing: float, colour: str, label: str) -> Mesh:
        model = self.component.model
        radii = vdw_radii(model.atoms.type_symbol[elements])
        field, origin = build_ses_grid(coords, radii, probe_radius=options.probe_radius,
                                       spacing=spacing)
        tm = mesh_from_field(field, origin, spacing=spacing)
        verts = np.asarray(tm.vertices, dtype=np.float32)
        if len(verts):
            _, groups = cKDTree(coords).query(verts)
            normals = np.asarray(tm.vertex_normals, dtype=np.float32).ravel()
        else:
            groups = np.zeros(0, dtype=np.int64)
            normals = np.zeros(0, dtype=np.float32)
        return Mesh(
            positions=verts.ravel(),
            group_indices=np.asarray(groups, dtype=np.int64),
            vertex_count=len(verts),
            faces=np.asarray(tm.faces, dtype=np.int64),
            normals=normals,
            color=_rgb(colour),
            label=label,
        )

    def represent_surface(self, structure: Structure, options: SurfaceOptions) -> list[RenderObject]:
        """Compute molecular-surface meshes for *structure*.

        ``granularity="structure"`` gives a single mesh whose group indices run
        over all atoms of the structure in unit order; ``"chain"`` gives one
        mesh per unit with group indices local to that unit.
        """
        if structure is not self.component:
            raise EngineContractError("Surface requested for a structure that is not the current selection")
        self.options = options
        spacing = options.grid_spacing(structure.atom_count)
        objects: list[RenderObject] = []
        if structure.is_empty:
            self.render_objects = objects
            return objects

        if options.granularity == "structure":
            coords = np.concatenate([u.coords for u in structure.units])
            elements = np.concatenate([u.elements for u in structure.units])
            objects.append(RenderObject("mesh", self._mesh(
                coords, elements, options, spacing, _STRUCTURE_COLOUR, "structure")))
        else:
            chains = structure.model.chains
            for unit in tqdm(structure.units, desc="Meshing units", disable=not self.verbose):
                label = f"{chains.label_asym_id[unit.chain_index]}_{unit.operator}"
                colour = _UNIT_COLOURS[unit.chain_index % len(_UNIT_COLOURS)]
                objects.append(RenderObject("mesh", self._mesh(
                    unit.coords, unit.elements, options, spacing, colour, label)))
        self.render_objects = objects
        return objects

    # --- export ------------------------------------------------------------

    @property
    def meshes(self) -> list[Mesh]:
        return [obj.values for obj in self.render_objects if obj.type == "mesh"]

    def export_geometry(self, name: str = "surface") -> dict[str, bytes]:
        """Return ``{name.obj: ..., name.mtl: ...}`` for everything currently rendered."""
        mtl_name = f"{name}.mtl"
        return {
            f"{name}.obj": write_obj(self.meshes, mtl_name).encode("utf-8"),
            mtl_name: write_mtl(self.meshes).encode("utf-8"),
        }

    def state_snapshot(self) -> dict:
        if self.structure is None:
            raise EngineContractError("No structure loaded; nothing to snapshot")
        component = self.component or self.structure
        chains = component.model.chains
        return {
            "version": __version__,
            "source": self.url,
            "entry_id": component.model.entry_id,
            "assembly_id": component.assembly_id,
            "options": None if self.options is None else {
                "probe_radius": self.options.probe_radius,
                "quality": self.options.quality,
                "granularity": self.options.granularity,
            },
            "units": [
                {
                    "label_asym_id": chains.label_asym_id[u.chain_index],
                    "auth_asym_id": chains.auth_asym_id[u.chain_index],
                    "operator": u.operator,
                    "atom_count": len(u),
                }
                for u in component.units
            ],
            "meshes": [
                {"label": m.label, "vertex_count": m.vertex_count,
                 "face_count": 0 if m.faces is None else int(len(m.faces))}
                for m in self.meshes
            ],
        }

    def save_state_snapshot(self, path: str | Path) -> Path:
        path = Path(path)
        path.write_text(json.dumps(self.state_snapshot(), indent=2), encoding="utf-8")
        if self.verbose:
            print(f"  Session snapshot written → {path}")
        return path
