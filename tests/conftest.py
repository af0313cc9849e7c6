"""Shared fixtures: a tiny mmCIF entry and helpers to serve it from disk.

Entry 1abc, model 1:
  chain A  (auth A, entity 1 polymer)      ALA, 3 atoms
  chain B  (auth B, entity 1 polymer)      GLY, 4 atoms
  chain C  (auth A, entity 2 non-polymer)  SO4, 1 atom
  chain D  (auth A, entity 3 water)        HOH, 1 atom
Model 2 holds a single extra atom that must never be used.
Assembly 1 = operator 1 on every chain; assembly 2 = operators 1,2 on chain A.
"""

import msgpack
import numpy as np
import pytest

from protein_surface.io.cif_parser import parse_cif_text
from protein_surface.structure.loader import models_from_block

TINY_CIF = """\
data_1ABC
#
_entry.id 1ABC
_struct.title 'Tiny test structure'
_struct.pdbx_descriptor
;Multi-line
description
;
#
loop_
_entity.id
_entity.type
1 polymer
2 non-polymer
3 water
#
loop_
_pdbx_struct_assembly.id
_pdbx_struct_assembly.details
1 author_defined_assembly
2 software_defined_assembly
#
loop_
_pdbx_struct_assembly_gen.assembly_id
_pdbx_struct_assembly_gen.oper_expression
_pdbx_struct_assembly_gen.asym_id_list
1 1 A,B,C,D
2 1,2 A
#
loop_
_pdbx_struct_oper_list.id
_pdbx_struct_oper_list.type
_pdbx_struct_oper_list.matrix[1][1]
_pdbx_struct_oper_list.matrix[1][2]
_pdbx_struct_oper_list.matrix[1][3]
_pdbx_struct_oper_list.vector[1]
_pdbx_struct_oper_list.matrix[2][1]
_pdbx_struct_oper_list.matrix[2][2]
_pdbx_struct_oper_list.matrix[2][3]
_pdbx_struct_oper_list.vector[2]
_pdbx_struct_oper_list.matrix[3][1]
_pdbx_struct_oper_list.matrix[3][2]
_pdbx_struct_oper_list.matrix[3][3]
_pdbx_struct_oper_list.vector[3]
1 'identity operation' 1 0 0 0 0 1 0 0 0 0 1 0
2 'translation' 1 0 0 50 0 1 0 0 0 0 1 0
#
loop_
_atom_site.group_PDB
_atom_site.id
_atom_site.type_symbol
_atom_site.label_atom_id
_atom_site.label_comp_id
_atom_site.label_asym_id
_atom_site.label_entity_id
_atom_site.label_seq_id
_atom_site.Cartn_x
_atom_site.Cartn_y
_atom_site.Cartn_z
_atom_site.auth_asym_id
_atom_site.pdbx_PDB_model_num
ATOM   1  N N   ALA A 1 1 0.000 0.000 0.000 A 1
ATOM   2  C CA  ALA A 1 1 1.500 0.000 0.000 A 1
ATOM   3  C C   ALA A 1 1 3.000 0.000 0.000 A 1
ATOM   4  N N   GLY B 1 1 0.000 6.000 0.000 B 1
ATOM   5  C CA  GLY B 1 1 1.500 6.000 0.000 B 1
ATOM   6  C C   GLY B 1 1 3.000 6.000 0.000 B 1
ATOM   7  O O   GLY B 1 1 4.500 6.000 0.000 B 1
HETATM 8  S S   SO4 C 2 . 8.000 0.000 0.000 A 1
HETATM 9  O O   HOH D 3 . 8.000 6.000 0.000 A 1
ATOM   10 N N   ALA A 1 1 0.000 0.000 0.000 A 2
#
"""


@pytest.fixture
def tiny_cif_text():
    return TINY_CIF


@pytest.fixture
def tiny_model():
    return models_from_block(parse_cif_text(TINY_CIF))[0]


def _encode_column(values):
    """Encode a list of values as a BinaryCIF column (test-only, simple encodings)."""
    present = [v for v in values if v is not None]
    mask = None
    if len(present) != len(values):
        flags = np.array([0 if v is not None else 1 for v in values], dtype=np.uint8)
        mask = {"data": flags.tobytes(), "encoding": [{"kind": "ByteArray", "type": 4}]}

    if present and all(isinstance(v, int) for v in present):
        arr = np.array([v if v is not None else 0 for v in values], dtype="<i4")
        data = {"data": arr.tobytes(), "encoding": [{"kind": "ByteArray", "type": 3}]}
    elif present and all(isinstance(v, float) for v in present):
        arr = np.array([v if v is not None else 0.0 for v in values], dtype="<f8")
        data = {"data": arr.tobytes(), "encoding": [{"kind": "ByteArray", "type": 33}]}
    else:
        present = [str(v) for v in present]
        strings = list(dict.fromkeys(present))
        offsets = np.cumsum([0] + [len(s) for s in strings]).astype("<i4")
        indices = np.array([strings.index(str(v)) if v is not None else -1 for v in values],
                           dtype="<i4")
        data = {
            "data": indices.tobytes(),
            "encoding": [{
                "kind": "StringArray",
                "dataEncoding": [{"kind": "ByteArray", "type": 3}],
                "stringData": "".join(strings),
                "offsetEncoding": [{"kind": "ByteArray", "type": 3}],
                "offsets": offsets.tobytes(),
            }],
        }
    return data, mask


def encode_bcif(categories, header="1ABC"):
    """Pack ``{category: {column: values}}`` into BinaryCIF bytes."""
    cats = []
    for name, columns in categories.items():
        cols = []
        row_count = 0
        for col_name, values in columns.items():
            data, mask = _encode_column(values)
            cols.append({"name": col_name, "data": data, "mask": mask})
            row_count = len(values)
        cats.append({"name": name, "columns": cols, "rowCount": row_count})
    doc = {"version": "0.3.0", "encoder": "tests",
           "dataBlocks": [{"header": header, "categories": cats}]}
    return msgpack.packb(doc, use_bin_type=True)


def _typed(value):
    if value is None:
        return None
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value


@pytest.fixture
def tiny_bcif_bytes():
    """The tiny entry re-encoded as BinaryCIF, with numeric columns typed."""
    block = parse_cif_text(TINY_CIF)
    categories = {
        name: {col: [_typed(v) for v in values] for col, values in cat.columns.items()}
        for name, cat in block.categories.items()
    }
    return encode_bcif(categories)


@pytest.fixture
def source_dir(tmp_path, tiny_cif_text, tiny_bcif_bytes):
    """Directory holding 1abc.cif and 1abc.bcif."""
    src = tmp_path / "structures"
    src.mkdir()
    (src / "1abc.cif").write_text(tiny_cif_text, encoding="utf-8")
    (src / "1abc.bcif").write_bytes(tiny_bcif_bytes)
    return src


@pytest.fixture
def cif_source(source_dir):
    return f"file://{source_dir}/{{id}}.cif"


@pytest.fixture
def bcif_source(source_dir):
    return f"file://{source_dir}/{{id}}.bcif"
