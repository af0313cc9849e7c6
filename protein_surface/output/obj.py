"""Wavefront OBJ/MTL writing and first-vertex normalization."""

from __future__ import annotations
import io
import zipfile
from pathlib import Path
from typing import NamedTuple, Sequence, Union

import numpy as np

from protein_surface.errors import DataIntegrityError
from protein_surface.surface.models import Mesh


class VertexLine(NamedTuple):
    x: float
    y: float
    z: float
    extra: tuple[str, ...] = ()     # optional w / colour components, kept verbatim

    def format(self) -> str:
        coords = f"v {self.x:.3f} {self.y:.3f} {self.z:.3f}"
        return " ".join((coords, *self.extra)) if self.extra else coords


class OtherLine(NamedTuple):
    text: str

    def format(self) -> str:
        return self.text


ObjLine = Union[VertexLine, OtherLine]


def parse_obj_lines(text: str) -> list[ObjLine]:
    """Split OBJ text into vertex lines and pass-through lines."""
    out: list[ObjLine] = []
    for lineno, line in enumerate(text.split("\n"), start=1):
        fields = line.split()
        if not fields or fields[0] != "v":
            out.append(OtherLine(line))
            continue
        try:
            x, y, z = (float(f) for f in fields[1:4])
        except ValueError:
            raise DataIntegrityError(f"Malformed OBJ vertex on line {lineno}: {line!r}") from None
        out.append(VertexLine(x, y, z, tuple(fields[4:])))
    return out


def format_obj_lines(lines: Sequence[ObjLine]) -> str:
    return "\n".join(line.format() for line in lines)


def first_vertex_position(text: str) -> np.ndarray | None:
    for line in parse_obj_lines(text):
        if isinstance(line, VertexLine):
            return np.array([line.x, line.y, line.z])
    return None


def shift_first_vertex(obj_text: str, anchor: Sequence[float]) -> str:
    """Translate all vertices so the first one lands exactly on *anchor*.

    Non-vertex lines are passed through unchanged and in order. Text with no
    vertex lines is returned as-is.
    """
    lines = parse_obj_lines(obj_text)
    shift: np.ndarray | None = None
    out: list[ObjLine] = []
    for line in lines:
        if isinstance(line, VertexLine):
            xyz = np.array([line.x, line.y, line.z])
            if shift is None:
                shift = np.asarray(anchor, dtype=np.float64) - xyz
            xyz = xyz + shift
            line = VertexLine(*xyz, line.extra)
        out.append(line)
    if shift is None:
        return obj_text
    return format_obj_lines(out)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def _material_name(i: int) -> str:
    return f"material_{i}"


def write_mtl(meshes: Sequence[Mesh]) -> str:
    lines: list[str] = []
    for i, mesh in enumerate(meshes):
        r, g, b = mesh.color
        lines += [
            f"newmtl {_material_name(i)}",
            f"Ka {r:.3f} {g:.3f} {b:.3f}",
            f"Kd {r:.3f} {g:.3f} {b:.3f}",
            "Ks 0.250 0.250 0.250",
            "d 1.000",
            "",
        ]
    return "\n".join(lines)


def write_obj(meshes: Sequence[Mesh], mtl_name: str) -> str:
    """Serialize *meshes* into one OBJ document referencing *mtl_name*."""
    lines = [f"mtllib {mtl_name}"]
    v_offset = 0
    for i, mesh in enumerate(meshes):
        verts = mesh.vertices
        normals = (np.asarray(mesh.normals).reshape(-1, 3)[:len(verts)]
                   if mesh.normals is not None else None)
        lines.append(f"o {mesh.label}")
        lines.append(f"usemtl {_material_name(i)}")
        lines.extend(f"v {x:.6f} {y:.6f} {z:.6f}" for x, y, z in verts)
        if normals is not None:
            lines.extend(f"vn {x:.4f} {y:.4f} {z:.4f}" for x, y, z in normals)
        faces = mesh.faces if mesh.faces is not None else np.zeros((0, 3), dtype=int)
        for face in np.asarray(faces, dtype=np.int64) + v_offset + 1:
            if normals is not None:
                lines.append("f " + " ".join(f"{k}//{k}" for k in face))
            else:
                lines.append("f " + " ".join(str(k) for k in face))
        v_offset += len(verts)
    return "\n".join(lines) + "\n"


def _shifted(files: dict[str, bytes], anchor: Sequence[float] | None) -> dict[str, bytes]:
    if anchor is None:
        return dict(files)
    out: dict[str, bytes] = {}
    for key, data in files.items():
        if Path(key).suffix == ".obj":
            data = shift_first_vertex(data.decode("utf-8"), anchor).encode("utf-8")
        out[key] = data
    return out


def save_geometry_files(
    files: dict[str, bytes],
    base: str | Path,
    anchor: Sequence[float] | None = None,
    verbose: bool = False,
) -> list[Path]:
    """Write each exported file as ``base + extension``; shift the .obj if *anchor*."""
    written: list[Path] = []
    for key, data in _shifted(files, anchor).items():
        path = Path(f"{base}{Path(key).suffix}")
        path.write_bytes(data)
        written.append(path)
        if verbose:
            print(f"  Geometry written → {path}")
    return written


def save_geometry_zip(
    files: dict[str, bytes],
    path: str | Path,
    anchor: Sequence[float] | None = None,
    verbose: bool = False,
) -> Path:
    """Write all exported files into one ZIP archive, shifting the .obj like
    :func:`save_geometry_files` does."""
    path = Path(path)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for key, data in _shifted(files, anchor).items():
            zf.writestr(key, data)
    path.write_bytes(buf.getvalue())
    if verbose:
        print(f"  Geometry archive written → {path}")
    return path
