import json

import numpy as np

from protein_surface.output.metadata import nice_json, write_metadata


def test_one_array_per_line(tmp_path) -> None:
    data = {
        "group_properties": {"atom_id": [1, 2], "label_seq_id": [1, None]},
        "vertex_properties": {"group_index": np.array([0, 1, 1]), "x": [np.float32(0.5)] * 3},
    }
    path = write_metadata(data, tmp_path / "1abc.metadata.json")
    text = path.read_text(encoding="utf-8")
    lines = text.splitlines()
    assert lines[0] == "{"
    assert lines[1] == '  "group_properties": {'
    assert lines[2] == '    "atom_id": [1, 2],'
    assert lines[3] == '    "label_seq_id": [1, null]'
    assert lines[4] == "  },"
    assert lines[6] == '    "group_index": [0, 1, 1],'
    assert text.endswith("}\n")
    assert json.loads(text)["vertex_properties"]["x"] == [0.5, 0.5, 0.5]


def test_empty_section() -> None:
    assert json.loads(nice_json({"group_properties": {}})) == {"group_properties": {}}
