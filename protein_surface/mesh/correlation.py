"""Correlate mesh vertices with the atoms (groups) they were generated from.

The engine emits one mesh per unit (chain granularity) or one merged mesh
(structure granularity). Each vertex carries a group index that is local to
its mesh's unit; adding the unit's offset (number of atoms in all preceding
units) turns it into a global atom index into :class:`GroupProperties`.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Sequence

import numpy as np

from protein_surface.errors import DataIntegrityError
from protein_surface.structure.hydrophobicity import hydrophobicity
from protein_surface.structure.models import Model, Unit
from protein_surface.surface.models import Mesh, Surface


@dataclass
class GroupProperties:
    atom_id: list[int] = field(default_factory=list)
    label_atom_id: list[str] = field(default_factory=list)
    label_comp_id: list[str] = field(default_factory=list)
    label_seq_id: list[int | None] = field(default_factory=list)
    label_asym_id: list[str] = field(default_factory=list)
    auth_asym_id: list[str] = field(default_factory=list)
    label_entity_id: list[str] = field(default_factory=list)
    residue_hydrophobicity_DGwif: list[float | None] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.atom_id)


@dataclass
class VertexProperties:
    group_index: list[int] = field(default_factory=list)
    # positions are kept for debugging only
    x: list[float] | None = None
    y: list[float] | None = None
    z: list[float] | None = None

    def __len__(self) -> int:
        return len(self.group_index)

    def as_dict(self) -> dict[str, list]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def unit_offsets(units: Sequence[Unit]) -> list[int]:
    """Exclusive prefix sum of unit sizes: atom j of unit i is ``offsets[i] + j``."""
    offsets: list[int] = []
    total = 0
    for unit in units:
        offsets.append(total)
        total += len(unit)
    return offsets


def group_properties(model: Model, units: Sequence[Unit]) -> GroupProperties:
    """One row per atom, unit-major then intra-unit order."""
    atoms = model.atoms
    chains = model.chains
    props = GroupProperties()
    for unit in units:
        for i_atom in unit.elements.tolist():
            i_chain = int(atoms.chain_index[i_atom])
            comp_id = atoms.label_comp_id[i_atom]
            props.atom_id.append(atoms.id[i_atom])
            props.label_atom_id.append(atoms.label_atom_id[i_atom])
            props.label_comp_id.append(comp_id)
            props.label_seq_id.append(atoms.label_seq_id[i_atom])
            props.label_asym_id.append(chains.label_asym_id[i_chain])
            props.auth_asym_id.append(chains.auth_asym_id[i_chain])
            props.label_entity_id.append(chains.label_entity_id[i_chain])
            props.residue_hydrophobicity_DGwif.append(hydrophobicity(comp_id, "DGwif"))
    return props


def true_vertex_count(mesh: Mesh, mesh_index: int = 0) -> int:
    """Number of real vertices in *mesh*.

    Engines may pad the group buffer past the real vertex count, so the
    declared count wins when it is smaller than the buffer. Without a
    declared count the whole buffer is used.
    """
    n_groups = len(mesh.group_indices)
    if mesh.vertex_count is None:
        return n_groups
    if mesh.vertex_count < 0:
        raise DataIntegrityError(
            f"Mesh {mesh_index} declares a negative vertex count ({mesh.vertex_count}); "
            f"group buffer has {n_groups} entries"
        )
    return min(mesh.vertex_count, n_groups)


def check_mesh_count(n_meshes: int, n_units: int, granularity: str | None = None) -> None:
    """Verify that meshes can be paired with units in emission order.

    ``"chain"`` granularity needs exactly one mesh per unit and
    ``"structure"`` at most one merged mesh. With unknown granularity only
    an excess of meshes can be detected.
    """
    if granularity == "chain":
        ok = n_meshes == n_units
    elif granularity == "structure":
        ok = n_meshes <= 1
    else:
        ok = n_meshes <= n_units
    if not ok:
        raise DataIntegrityError(
            f"Got {n_meshes} meshes for {n_units} units with "
            f"{granularity or 'unknown'} granularity; mesh emission order "
            "must match unit order one-to-one"
        )


def vertex_properties(
    meshes: Sequence[Mesh],
    offsets: Sequence[int],
    include_positions: bool = True,
) -> VertexProperties:
    """Global group index (and optionally position) for every kept vertex."""
    check_mesh_count(len(meshes), len(offsets))
    props = VertexProperties()
    if include_positions:
        props.x, props.y, props.z = [], [], []

    for i_mesh, mesh in enumerate(meshes):
        n = true_vertex_count(mesh, i_mesh)
        groups = np.asarray(mesh.group_indices[:n], dtype=np.int64)
        props.group_index.extend((groups + offsets[i_mesh]).tolist())
        if include_positions:
            positions = np.asarray(mesh.positions)
            if len(positions) < 3 * n:
                raise DataIntegrityError(
                    f"Mesh {i_mesh}: position buffer has {len(positions)} values, "
                    f"expected at least {3 * n} for {n} vertices"
                )
            xyz = positions[:3 * n].reshape(-1, 3)
            props.x.extend(xyz[:, 0].tolist())
            props.y.extend(xyz[:, 1].tolist())
            props.z.extend(xyz[:, 2].tolist())
    return props


def extract(
    model: Model,
    units: Sequence[Unit],
    meshes: Sequence[Mesh],
    include_positions: bool = True,
    granularity: str | None = None,
) -> tuple[GroupProperties, VertexProperties]:
    check_mesh_count(len(meshes), len(units), granularity)
    offsets = unit_offsets(units)
    return (
        group_properties(model, units),
        vertex_properties(meshes, offsets, include_positions=include_positions),
    )


def surface_metadata(surface: Surface, include_positions: bool = True) -> dict[str, dict[str, list]]:
    """Metadata document for one computed surface, ready for JSON output."""
    groups, vertices = extract(
        surface.structure.model, surface.structure.units, surface.meshes,
        include_positions=include_positions, granularity=surface.granularity,
    )
    return {
        "group_properties": asdict(groups),
        "vertex_properties": vertices.as_dict(),
    }
