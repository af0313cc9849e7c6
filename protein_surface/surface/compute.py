"""Compute a molecular surface for one structure reference."""

from __future__ import annotations
import warnings

import numpy as np

from protein_surface.errors import AssemblyMismatchError, EmptyStructureWarning, EngineContractError
from protein_surface.io.dataset import StructureRef
from protein_surface.structure.chains import build_chain_mapping, resolve_selection
from protein_surface.structure.models import Structure
from protein_surface.surface.engine import SurfaceEngine
from protein_surface.surface.models import Mesh, Surface, SurfaceOptions


def is_binary_url(url: str) -> bool:
    return url.lower().endswith(".bcif")


def check_assembly_id(structure: Structure | None, assembly_id: str | None) -> None:
    """Raise unless *structure* is the requested assembly (or deposited model)."""
    if structure is None:
        raise EngineContractError("Engine did not produce a structure")
    if structure.assembly_id != assembly_id:
        raise AssemblyMismatchError(assembly_id, structure.assembly_id)


def compute_surface(
    engine: SurfaceEngine,
    ref: StructureRef,
    options: SurfaceOptions | None = None,
    verbose: bool = False,
) -> Surface:
    """Load *ref*, select its polymer chains and mesh their molecular surface.

    Parameters
    ----------
    engine:
        The engine to run on; it must have been reset since the last reference.
    ref:
        Structure reference with ``url`` filled in.
    options:
        Probe radius, quality and granularity. Defaults to ``SurfaceOptions()``.
    verbose:
        Print progress messages.
    """
    options = options or SurfaceOptions()
    if ref.url is None:
        raise EngineContractError(f"Structure reference {ref.name} has no source URL")

    data = engine.download(ref.url)
    trajectory = engine.parse(data, binary=is_binary_url(ref.url))
    if not trajectory:
        raise EngineContractError(f"No models parsed from {ref.url}")
    structure = engine.build_structure(trajectory[0], ref.assembly_id)
    check_assembly_id(structure, ref.assembly_id)

    model = structure.model
    mapping = build_chain_mapping(model.entities, model.chains)
    label_asym_ids = resolve_selection(mapping, ref.auth_chain_id)
    if verbose:
        print(f"  Selected chains: {', '.join(label_asym_ids) or '(none)'}")

    component = engine.select_chains(structure, label_asym_ids)
    if component.is_empty:
        warnings.warn(
            f"Structure is empty (URL: {ref.url}, chain: {ref.auth_chain_id or 'all chains'})",
            EmptyStructureWarning,
        )

    render_objects = engine.represent_surface(component, options)
    meshes = [obj.values for obj in render_objects if obj.type == "mesh"]
    if verbose:
        n_verts = sum(m.vertex_count or 0 for m in meshes)
        print(f"  {len(component.units)} unit(s), {len(meshes)} mesh(es), {n_verts} vertices")
    return Surface(structure=component, meshes=meshes, granularity=options.granularity)


def get_first_vertex(meshes: list[Mesh]) -> np.ndarray | None:
    """Position of the first vertex of the first mesh, if there is one."""
    if not meshes:
        return None
    positions = np.asarray(meshes[0].positions)
    if len(positions) < 3:
        return None
    return positions[:3].astype(np.float64)
