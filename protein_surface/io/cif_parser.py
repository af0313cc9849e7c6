"""Stdlib-only mmCIF reader: tokenizes a data block into columnar categories."""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Iterator

from protein_surface.errors import DataIntegrityError

_TOKEN = re.compile(r"""'.*?'(?=\s|$)|".*?"(?=\s|$)|\S+""")


@dataclass
class CifCategory:
    """One mmCIF category stored column-wise.

    Missing values (``.`` and ``?`` in text files, masked values in BinaryCIF)
    are stored as ``None``.
    """
    name: str
    columns: dict[str, list] = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(next(iter(self.columns.values()), []))

    def has(self, column: str) -> bool:
        return column in self.columns

    def column(self, name: str) -> list:
        try:
            return self.columns[name]
        except KeyError:
            raise DataIntegrityError(
                f"Category {self.name} has no column {name!r}"
            ) from None

    def validate(self) -> None:
        lengths = {k: len(v) for k, v in self.columns.items()}
        if len(set(lengths.values())) > 1:
            raise DataIntegrityError(
                f"Category {self.name} has columns of unequal length: {lengths}"
            )


@dataclass
class CifBlock:
    header: str
    categories: dict[str, CifCategory] = field(default_factory=dict)

    def get(self, name: str) -> CifCategory | None:
        return self.categories.get(name)


def _tokens(text: str) -> Iterator[tuple[str, bool]]:
    """Yield ``(value, quoted)`` pairs, handling ``;`` text fields and comments."""
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith(";"):
            # Multi-line text field runs until a line starting with ';'
            buf = [line[1:]]
            i += 1
            while i < len(lines) and not lines[i].startswith(";"):
                buf.append(lines[i])
                i += 1
            if i == len(lines):
                raise DataIntegrityError("Unterminated ';' text field in mmCIF")
            yield "\n".join(buf).strip(), True
            i += 1
            continue
        for m in _TOKEN.finditer(line):
            tok = m.group(0)
            if tok.startswith("#"):
                break
            if tok[0] in "'\"" and len(tok) >= 2 and tok[-1] == tok[0]:
                yield tok[1:-1], True
            else:
                yield tok, False
        i += 1


def _value(tok: str, quoted: bool) -> str | None:
    if not quoted and tok in (".", "?"):
        return None
    return tok


def _split_tag(tag: str) -> tuple[str, str]:
    if "." not in tag:
        raise DataIntegrityError(f"Malformed mmCIF tag {tag!r}")
    cat, col = tag.split(".", 1)
    return cat, col


def parse_cif_text(text: str) -> CifBlock:
    """Parse the first data block of an mmCIF document."""
    tokens = list(_tokens(text))
    block: CifBlock | None = None
    i = 0
    n = len(tokens)

    while i < n:
        tok, quoted = tokens[i]
        if not quoted and tok.startswith("data_"):
            if block is not None:
                break  # only the first block
            block = CifBlock(header=tok[5:])
            i += 1
            continue
        if block is None:
            raise DataIntegrityError("mmCIF data does not start with a data_ block")

        if not quoted and tok == "loop_":
            i += 1
            tags: list[str] = []
            while i < n and not tokens[i][1] and tokens[i][0].startswith("_"):
                tags.append(tokens[i][0])
                i += 1
            if not tags:
                raise DataIntegrityError("mmCIF loop_ without column tags")
            values: list[str | None] = []
            while i < n:
                tok, quoted = tokens[i]
                if not quoted and (tok.startswith("_") or tok == "loop_"
                                   or tok.startswith("data_")):
                    break
                values.append(_value(tok, quoted))
                i += 1
            if len(values) % len(tags):
                raise DataIntegrityError(
                    f"Loop {tags[0].split('.')[0]} has {len(values)} values, "
                    f"not a multiple of its {len(tags)} columns"
                )
            for k, tag in enumerate(tags):
                cat, col = _split_tag(tag)
                block.categories.setdefault(cat, CifCategory(cat)).columns[col] = values[k::len(tags)]
            continue

        if not quoted and tok.startswith("_"):
            if i + 1 >= n:
                raise DataIntegrityError(f"mmCIF tag {tok} has no value")
            cat, col = _split_tag(tok)
            block.categories.setdefault(cat, CifCategory(cat)).columns[col] = [_value(*tokens[i + 1])]
            i += 2
            continue

        raise DataIntegrityError(f"Unexpected token {tok!r} in mmCIF data")

    if block is None:
        raise DataIntegrityError("No data_ block found in mmCIF data")
    for cat in block.categories.values():
        cat.validate()
    return block
