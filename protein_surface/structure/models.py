"""Central data structures describing a parsed structure and its units."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np

from protein_surface.errors import DataIntegrityError


def _check_lengths(table: str, n: int, **columns) -> None:
    bad = {k: len(v) for k, v in columns.items() if len(v) != n}
    if bad:
        raise DataIntegrityError(
            f"{table}: expected {n} rows, got column lengths {bad}"
        )


class ChainRow(NamedTuple):
    label_asym_id: str
    auth_asym_id: str
    label_entity_id: str


@dataclass
class EntityTable:
    id: list[str]
    type: list[str]       # polymer, non-polymer, water, branched, ...

    def __post_init__(self) -> None:
        _check_lengths("entity table", len(self.id), type=self.type)

    def __len__(self) -> int:
        return len(self.id)


@dataclass
class ChainTable:
    label_asym_id: list[str]
    auth_asym_id: list[str]
    label_entity_id: list[str]

    def __post_init__(self) -> None:
        _check_lengths(
            "chain table", len(self.label_asym_id),
            auth_asym_id=self.auth_asym_id,
            label_entity_id=self.label_entity_id,
        )

    def __len__(self) -> int:
        return len(self.label_asym_id)

    def row(self, i: int) -> ChainRow:
        return ChainRow(
            self.label_asym_id[i], self.auth_asym_id[i], self.label_entity_id[i]
        )


@dataclass
class AtomTable:
    """Per-atom columns of one model; string columns are object arrays."""
    id: np.ndarray                # atom serial numbers
    type_symbol: np.ndarray
    label_atom_id: np.ndarray
    label_comp_id: np.ndarray
    label_seq_id: np.ndarray      # int or None
    label_asym_id: np.ndarray
    auth_asym_id: np.ndarray
    label_entity_id: np.ndarray
    coords: np.ndarray            # (N, 3), Angstroms
    chain_index: np.ndarray       # row in the ChainTable for each atom

    def __post_init__(self) -> None:
        n = len(self.id)
        _check_lengths(
            "atom table", n,
            type_symbol=self.type_symbol,
            label_atom_id=self.label_atom_id,
            label_comp_id=self.label_comp_id,
            label_seq_id=self.label_seq_id,
            label_asym_id=self.label_asym_id,
            auth_asym_id=self.auth_asym_id,
            label_entity_id=self.label_entity_id,
            coords=self.coords,
            chain_index=self.chain_index,
        )
        if self.coords.ndim != 2 or self.coords.shape[1] != 3:
            raise DataIntegrityError(
                f"atom table: coordinates must have shape (N, 3), got {self.coords.shape}"
            )

    def __len__(self) -> int:
        return len(self.id)


@dataclass
class Operator:
    """Rigid transform of one assembly copy (a product of oper_list entries)."""
    name: str
    matrix: np.ndarray    # (3, 3)
    vector: np.ndarray    # (3,)

    def apply(self, coords: np.ndarray) -> np.ndarray:
        return coords @ self.matrix.T + self.vector

    @classmethod
    def identity(cls, name: str = "1") -> "Operator":
        return cls(name, np.eye(3), np.zeros(3))


@dataclass
class AssemblyGen:
    """One _pdbx_struct_assembly_gen row with its operator expression expanded."""
    asym_ids: list[str]
    operators: list[Operator]


@dataclass
class Model:
    entry_id: str
    model_num: int
    entities: EntityTable
    chains: ChainTable
    atoms: AtomTable
    assemblies: dict[str, list[AssemblyGen]] = field(default_factory=dict)


@dataclass
class Unit:
    """Contiguous block of atoms (one chain under one operator)."""
    unit_id: int
    chain_index: int
    operator: str
    elements: np.ndarray    # atom rows in Model.atoms, stable order
    coords: np.ndarray      # (len(elements), 3), operator applied

    def __len__(self) -> int:
        return len(self.elements)


@dataclass
class Structure:
    model: Model
    units: list[Unit]
    assembly_id: str | None = None    # None for the deposited model

    @property
    def atom_count(self) -> int:
        return sum(len(u) for u in self.units)

    @property
    def is_empty(self) -> bool:
        return self.atom_count == 0
