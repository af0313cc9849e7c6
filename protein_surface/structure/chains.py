"""Translation between author (auth_asym_id) and internal (label_asym_id) chain ids."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from protein_surface.errors import DataIntegrityError
from protein_surface.structure.models import ChainTable, EntityTable, Structure, Unit


@dataclass
class ChainMapping:
    # every label_asym_id -> its auth_asym_id
    label_to_auth: dict[str, str] = field(default_factory=dict)
    # auth_asym_id -> first polymer label_asym_id carrying it
    auth_to_label: dict[str, str] = field(default_factory=dict)


def build_chain_mapping(entities: EntityTable, chains: ChainTable) -> ChainMapping:
    """Build the bidirectional chain-id index for one structure.

    ``label_to_auth`` covers every chain row. ``auth_to_label`` only covers
    polymer chains, and when several polymer chains share an author id the
    first one in table order wins.
    """
    entity_types = dict(zip(entities.id, entities.type))
    mapping = ChainMapping()
    for i in range(len(chains)):
        label, auth, entity_id = chains.row(i)
        if entity_id not in entity_types:
            raise DataIntegrityError(
                f"Chain {label!r} (row {i}) references entity {entity_id!r}, "
                f"which is not in the entity table"
            )
        mapping.label_to_auth[label] = auth
        if entity_types[entity_id] == "polymer":
            mapping.auth_to_label.setdefault(auth, label)
    return mapping


def resolve_selection(mapping: ChainMapping, auth_chain_id: str | None = None) -> list[str]:
    """Return the label_asym_ids to keep.

    With *auth_chain_id*, a one-element list (or an empty list if no polymer
    chain has that author id). Without it, one label id per distinct polymer
    author chain.
    """
    if auth_chain_id is not None:
        label = mapping.auth_to_label.get(auth_chain_id)
        return [label] if label is not None else []
    return list(mapping.auth_to_label.values())


def select_chains(structure: Structure, label_asym_ids: Iterable[str]) -> Structure:
    """Keep atoms whose label_asym_id is in *label_asym_ids*; drop emptied units."""
    keep = np.array(sorted(set(label_asym_ids)), dtype=object)
    column = structure.model.atoms.label_asym_id
    units: list[Unit] = []
    for unit in structure.units:
        mask = np.isin(column[unit.elements], keep)
        if not mask.any():
            continue
        units.append(Unit(
            unit_id=len(units),
            chain_index=unit.chain_index,
            operator=unit.operator,
            elements=unit.elements[mask],
            coords=unit.coords[mask],
        ))
    return Structure(model=structure.model, units=units, assembly_id=structure.assembly_id)
