"""Structure references and the line-oriented input dataset format.

A reference is ``{entry_id}[_{assembly_id}][-{auth_chain_id}]``; a comma may
be used instead of the dash. Examples: ``1e94``, ``1e94-E``, ``1e94_3``,
``1e94_3-E``. Dataset files hold one reference per line; blank lines and
lines starting with ``#`` are ignored.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, replace
from pathlib import Path

from protein_surface.errors import InputError

_CHAIN_SEP = re.compile(r"[-,]")


@dataclass(frozen=True)
class StructureRef:
    entry_id: str
    assembly_id: str | None = None      # None: deposited model
    auth_chain_id: str | None = None    # None: all polymer chains
    url: str | None = None

    @property
    def name(self) -> str:
        return filename_for(self)

    def with_source(self, template: str) -> "StructureRef":
        """Return a copy whose ``url`` is *template* with ``{id}`` filled in."""
        return replace(self, url=template.replace("{id}", self.entry_id))


def parse_reference(text: str) -> StructureRef:
    """Parse one reference, e.g. ``1e94_3-E``."""
    ref = text.strip()
    parts = _CHAIN_SEP.split(ref)
    if len(parts) > 2:
        raise InputError(f"Invalid structure reference {text!r}: more than one chain separator")
    struct = parts[0]
    chain = parts[1] if len(parts) == 2 else None

    entry, _, assembly = struct.partition("_")
    if "_" in assembly:
        raise InputError(f"Invalid structure reference {text!r}: more than one '_'")
    if not entry:
        raise InputError(f"Invalid structure reference {text!r}: missing entry ID")
    if "_" in struct and not assembly:
        raise InputError(f"Invalid structure reference {text!r}: empty assembly ID")
    if chain is not None and not chain:
        raise InputError(f"Invalid structure reference {text!r}: empty chain ID")
    if any(c.isspace() for c in ref):
        raise InputError(f"Invalid structure reference {text!r}: contains whitespace")
    return StructureRef(entry_id=entry, assembly_id=assembly or None, auth_chain_id=chain)


def parse_dataset(contents: str) -> list[StructureRef]:
    """Parse dataset text into references, skipping blank and ``#`` lines."""
    refs: list[StructureRef] = []
    for lineno, line in enumerate(contents.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            refs.append(parse_reference(line))
        except InputError as exc:
            raise InputError(f"Line {lineno}: {exc}") from exc
    return refs


def load_dataset(path: str | Path) -> list[StructureRef]:
    return parse_dataset(Path(path).read_text(encoding="utf-8"))


def filename_for(ref: StructureRef) -> str:
    """Base output filename (no extension): ``entry[_assembly][-chain]``."""
    out = ref.entry_id
    if ref.assembly_id:
        out += f"_{ref.assembly_id}"
    if ref.auth_chain_id:
        out += f"-{ref.auth_chain_id}"
    return out
