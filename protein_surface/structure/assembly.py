"""Materialize the deposited model or a biological assembly as units."""

from __future__ import annotations

import numpy as np

from protein_surface.structure.models import Model, Operator, Structure, Unit


def _chain_elements(model: Model) -> list[np.ndarray]:
    return [np.flatnonzero(model.atoms.chain_index == i) for i in range(len(model.chains))]


def build_structure(model: Model, assembly_id: str | None = None) -> Structure:
    """Return the deposited model (``assembly_id=None``) or an assembly.

    Units are ordered by generator row, then operator, then chain order.
    An unknown *assembly_id* falls back to the first assembly defined in the
    file, so callers must check ``Structure.assembly_id`` afterwards.
    """
    elements = _chain_elements(model)
    atoms = model.atoms

    if assembly_id is None:
        identity = Operator.identity()
        units = [
            Unit(i, i, identity.name, el, atoms.coords[el])
            for i, el in enumerate(elements)
        ]
        return Structure(model=model, units=units, assembly_id=None)

    if assembly_id not in model.assemblies:
        if not model.assemblies:
            return build_structure(model, None)
        assembly_id = next(iter(model.assemblies))

    units: list[Unit] = []
    for gen in model.assemblies[assembly_id]:
        asym_ids = set(gen.asym_ids)
        for op in gen.operators:
            for chain_idx, el in enumerate(elements):
                if model.chains.label_asym_id[chain_idx] not in asym_ids:
                    continue
                units.append(Unit(len(units), chain_idx, op.name, el, op.apply(atoms.coords[el])))
    return Structure(model=model, units=units, assembly_id=assembly_id)
