"""Build Model objects (a trajectory) from a parsed mmCIF/BinaryCIF block."""

from __future__ import annotations

import gemmi
import numpy as np

from protein_surface.errors import DataIntegrityError
from protein_surface.io.cif_parser import CifBlock, CifCategory
from protein_surface.structure.models import (
    AssemblyGen, AtomTable, ChainTable, EntityTable, Model, Operator,
)

_WATER_NAMES = {"HOH", "WAT", "DOD", "H2O"}


def _str(v) -> str | None:
    if v is None:
        return None
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _int(v) -> int | None:
    if v is None:
        return None
    try:
        return int(v)
    except ValueError:
        raise DataIntegrityError(f"Expected an integer, got {v!r}") from None


def _float(v) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        raise DataIntegrityError(f"Expected a number, got {v!r}") from None


def _optional(cat: CifCategory, name: str, fallback: str | None = None) -> list:
    if cat.has(name):
        return cat.column(name)
    if fallback is not None and cat.has(fallback):
        return cat.column(fallback)
    return [None] * cat.row_count


def _entity_table(block: CifBlock, atoms: AtomTable, group_pdb: np.ndarray) -> EntityTable:
    cat = block.get("_entity")
    if cat is not None and cat.row_count:
        return EntityTable(
            id=[_str(v) for v in cat.column("id")],
            type=[_str(v) for v in _optional(cat, "type")],
        )
    # No _entity category: classify from the atom records
    ids: list[str] = []
    types: list[str] = []
    for entity_id in dict.fromkeys(atoms.label_entity_id.tolist()):
        mask = atoms.label_entity_id == entity_id
        comps = set(atoms.label_comp_id[mask].tolist())
        if comps <= _WATER_NAMES:
            kind = "water"
        elif np.any(group_pdb[mask] == "ATOM"):
            kind = "polymer"
        else:
            kind = "non-polymer"
        ids.append(entity_id)
        types.append(kind)
    return EntityTable(id=ids, type=types)


def _chain_segments(label_asym_id: np.ndarray, auth_asym_id: np.ndarray,
                    label_entity_id: np.ndarray) -> tuple[ChainTable, np.ndarray]:
    """Split atoms into chains wherever label_asym_id changes."""
    chain_index = np.zeros(len(label_asym_id), dtype=np.int64)
    labels: list[str] = []
    auths: list[str] = []
    entities: list[str] = []
    prev = None
    for i, label in enumerate(label_asym_id.tolist()):
        if label != prev:
            labels.append(label)
            auths.append(auth_asym_id[i])
            entities.append(label_entity_id[i])
            prev = label
        chain_index[i] = len(labels) - 1
    return ChainTable(labels, auths, entities), chain_index


_ASSEMBLY_CATEGORIES = ("_pdbx_struct_assembly", "_pdbx_struct_assembly_gen", "_pdbx_struct_oper_list")


def _cif_value(v) -> str:
    return "?" if v is None else gemmi.cif.quote(_str(v))


def _copy_category(out: gemmi.cif.Block, cat: CifCategory) -> None:
    tags = list(cat.columns)
    loop = out.init_loop(f"{cat.name}.", tags)
    for row in zip(*(cat.columns[t] for t in tags)):
        loop.add_row([_cif_value(v) for v in row])


def _assemblies(block: CifBlock) -> dict[str, list[AssemblyGen]]:
    """Read biological assemblies with gemmi, keyed by id in _pdbx_struct_assembly order.

    Only the three assembly categories are handed to gemmi, so text and
    BinaryCIF input go through the same path.
    """
    gen_cat = block.get("_pdbx_struct_assembly_gen")
    if gen_cat is None or gen_cat.row_count == 0:
        return {}

    doc = gemmi.cif.Document()
    out = doc.add_new_block(block.header or "structure")
    for name in _ASSEMBLY_CATEGORIES:
        cat = block.get(name)
        if cat is not None and cat.row_count:
            _copy_category(out, cat)
    asm_cat = block.get("_pdbx_struct_assembly")
    if asm_cat is None or asm_cat.row_count == 0:
        # gemmi only expands assemblies listed in _pdbx_struct_assembly
        ids = dict.fromkeys(_str(v) for v in gen_cat.column("assembly_id"))
        _copy_category(out, CifCategory("_pdbx_struct_assembly", {"id": list(ids)}))

    try:
        st = gemmi.make_structure_from_block(out)
    except (RuntimeError, ValueError) as exc:
        raise DataIntegrityError(f"Cannot read assemblies of {block.header}: {exc}") from exc

    assemblies: dict[str, list[AssemblyGen]] = {}
    for assembly in st.assemblies:
        assemblies[assembly.name] = [
            AssemblyGen(
                asym_ids=list(gen.subchains),
                operators=[
                    Operator(op.name,
                             np.array(op.transform.mat.tolist(), dtype=np.float64),
                             np.array(op.transform.vec.tolist(), dtype=np.float64))
                    for op in gen.operators
                ],
            )
            for gen in assembly.generators
        ]
    return assemblies


def models_from_block(block: CifBlock) -> list[Model]:
    """Return one Model per distinct ``pdbx_PDB_model_num``, in file order."""
    site = block.get("_atom_site")
    if site is None or site.row_count == 0:
        raise DataIntegrityError("Structure data has no _atom_site records")

    entry = block.get("_entry")
    entry_id = _str(entry.column("id")[0]) if entry is not None and entry.has("id") else block.header

    model_nums = np.array([_int(v) if v is not None else 1
                           for v in _optional(site, "pdbx_PDB_model_num")])
    label_asym = np.array([_str(v) for v in site.column("label_asym_id")], dtype=object)
    auth_asym = np.array([_str(v) for v in _optional(site, "auth_asym_id", "label_asym_id")],
                         dtype=object)
    entity_ids = np.array([_str(v) for v in _optional(site, "label_entity_id")], dtype=object)
    coords = np.column_stack([
        np.asarray([_float(v) for v in site.column(c)], dtype=np.float64)
        for c in ("Cartn_x", "Cartn_y", "Cartn_z")
    ])
    columns = {
        "id": np.array([_int(v) for v in site.column("id")], dtype=object),
        "type_symbol": np.array([_str(v) for v in _optional(site, "type_symbol")], dtype=object),
        "label_atom_id": np.array([_str(v) for v in _optional(site, "label_atom_id")], dtype=object),
        "label_comp_id": np.array([_str(v) for v in _optional(site, "label_comp_id")], dtype=object),
        "label_seq_id": np.array([_int(v) for v in _optional(site, "label_seq_id")], dtype=object),
    }
    group_pdb = np.array([_str(v) for v in _optional(site, "group_PDB")], dtype=object)

    assemblies = _assemblies(block)

    models: list[Model] = []
    for num in dict.fromkeys(model_nums.tolist()):
        mask = model_nums == num
        chains, chain_index = _chain_segments(label_asym[mask], auth_asym[mask], entity_ids[mask])
        atoms = AtomTable(
            **{k: v[mask] for k, v in columns.items()},
            label_asym_id=label_asym[mask],
            auth_asym_id=auth_asym[mask],
            label_entity_id=entity_ids[mask],
            coords=coords[mask],
            chain_index=chain_index,
        )
        models.append(Model(
            entry_id=entry_id,
            model_num=num,
            entities=_entity_table(block, atoms, group_pdb[mask]),
            chains=chains,
            atoms=atoms,
            assemblies=assemblies,
        ))
    return models
