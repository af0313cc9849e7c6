"""Write per-group and per-vertex surface metadata as JSON."""

from __future__ import annotations
import json
from pathlib import Path

import numpy as np


class _NumpyEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, (np.integer,)):
            return int(obj)
        if isinstance(obj, (np.floating,)):
            return float(obj)
        return super().default(obj)


def nice_json(data: dict[str, dict[str, list]]) -> str:
    """Serialize an object of objects of arrays, one array per line."""
    sections = []
    for section, arrays in data.items():
        rows = [
            f"    {json.dumps(name)}: {json.dumps(values, cls=_NumpyEncoder)}"
            for name, values in arrays.items()
        ]
        body = ",\n".join(rows)
        sections.append(f"  {json.dumps(section)}: {{\n{body}\n  }}" if rows
                        else f"  {json.dumps(section)}: {{}}")
    return "{\n" + ",\n".join(sections) + "\n}\n"


def write_metadata(
    metadata: dict[str, dict[str, list]],
    output_path: str | Path,
    verbose: bool = False,
) -> Path:
    """Write surface metadata (group_properties / vertex_properties) as JSON."""
    output_path = Path(output_path)
    output_path.write_text(nice_json(metadata), encoding="utf-8")
    if verbose:
        print(f"  Metadata written → {output_path}")
    return output_path
