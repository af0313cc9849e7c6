"""BinaryCIF reader.

BinaryCIF is a MessagePack container holding mmCIF categories column by
column. Every column is a byte buffer plus the chain of encodings that were
applied to produce it; decoding applies the inverse of each encoding in
reverse order. Supported encodings: ByteArray, FixedPoint,
IntervalQuantization, RunLength, Delta, IntegerPacking and StringArray.
"""

from __future__ import annotations

import msgpack
import numpy as np

from protein_surface.errors import DataIntegrityError
from protein_surface.io.cif_parser import CifBlock, CifCategory

# ByteArray type codes; BinaryCIF is little-endian throughout
_DTYPES = {
    1: np.dtype("<i1"), 2: np.dtype("<i2"), 3: np.dtype("<i4"),
    4: np.dtype("<u1"), 5: np.dtype("<u2"), 6: np.dtype("<u4"),
    32: np.dtype("<f4"), 33: np.dtype("<f8"),
}
_FLOAT_TYPES = {32: np.float32, 33: np.float64}


def _byte_array(data, enc):
    try:
        dtype = _DTYPES[enc["type"]]
    except KeyError:
        raise DataIntegrityError(f"Unknown ByteArray type {enc['type']}") from None
    return np.frombuffer(data, dtype=dtype)


def _fixed_point(data, enc):
    dtype = _FLOAT_TYPES.get(enc.get("srcType"), np.float64)
    return (np.asarray(data, dtype=np.float64) / enc["factor"]).astype(dtype)


def _interval_quantization(data, enc):
    dtype = _FLOAT_TYPES.get(enc.get("srcType"), np.float64)
    steps = enc["numSteps"]
    delta = (enc["max"] - enc["min"]) / (steps - 1) if steps > 1 else 0.0
    return (enc["min"] + np.asarray(data, dtype=np.float64) * delta).astype(dtype)


def _run_length(data, enc):
    data = np.asarray(data)
    out = np.repeat(data[0::2], data[1::2])
    if "srcSize" in enc and len(out) != enc["srcSize"]:
        raise DataIntegrityError(
            f"RunLength decoded {len(out)} values, expected {enc['srcSize']}"
        )
    return out


def _delta(data, enc):
    out = np.asarray(data, dtype=np.int64).copy()
    if len(out):
        out[0] += enc["origin"]
    return np.cumsum(out)


def _integer_packing(data, enc):
    unsigned = enc["isUnsigned"]
    if enc["byteCount"] == 1:
        upper, lower = (0xFF, 0) if unsigned else (0x7F, -0x80)
    else:
        upper, lower = (0xFFFF, 0) if unsigned else (0x7FFF, -0x8000)
    out = np.empty(enc["srcSize"], dtype=np.int64)
    j = 0
    acc = 0
    for value in np.asarray(data).tolist():
        acc += value
        # A saturated value means the next packed value continues this one
        if value == upper or (not unsigned and value == lower):
            continue
        out[j] = acc
        j += 1
        acc = 0
    if j != len(out):
        raise DataIntegrityError(
            f"IntegerPacking decoded {j} values, expected {len(out)}"
        )
    return out


def _string_array(data, enc):
    indices = decode_data(data, enc["dataEncoding"])
    offsets = decode_data(enc["offsets"], enc["offsetEncoding"]).tolist()
    text = enc["stringData"]
    strings = [text[offsets[k]:offsets[k + 1]] for k in range(len(offsets) - 1)]
    return [strings[k] if k >= 0 else None for k in np.asarray(indices).tolist()]


_DECODERS = {
    "ByteArray": _byte_array,
    "FixedPoint": _fixed_point,
    "IntervalQuantization": _interval_quantization,
    "RunLength": _run_length,
    "Delta": _delta,
    "IntegerPacking": _integer_packing,
    "StringArray": _string_array,
}


def decode_data(data, encodings: list[dict]):
    """Apply the inverse of *encodings* (last applied is undone first)."""
    for enc in reversed(encodings):
        kind = enc.get("kind")
        if kind not in _DECODERS:
            raise DataIntegrityError(f"Unsupported BinaryCIF encoding {kind!r}")
        data = _DECODERS[kind](data, enc)
    return data


def _decode_column(col: dict) -> list:
    values = decode_data(col["data"]["data"], col["data"]["encoding"])
    values = values if isinstance(values, list) else values.tolist()
    mask = col.get("mask")
    if mask:
        flags = np.asarray(decode_data(mask["data"], mask["encoding"])).tolist()
        # 0 = present, 1 = '.', 2 = '?'
        values = [v if f == 0 else None for v, f in zip(values, flags)]
    return values


def parse_bcif(data: bytes) -> CifBlock:
    """Decode the first data block of a BinaryCIF file."""
    try:
        doc = msgpack.unpackb(data, raw=False)
    except (ValueError, msgpack.UnpackException) as exc:
        raise DataIntegrityError(f"Cannot unpack BinaryCIF data: {exc}") from exc
    blocks = doc.get("dataBlocks") if isinstance(doc, dict) else None
    if not blocks:
        raise DataIntegrityError("BinaryCIF file contains no data blocks")

    raw = blocks[0]
    block = CifBlock(header=raw.get("header", ""))
    for cat in raw["categories"]:
        name = cat["name"]
        if not name.startswith("_"):
            name = "_" + name
        category = CifCategory(name)
        for col in cat["columns"]:
            category.columns[col["name"]] = _decode_column(col)
        category.validate()
        if category.columns and category.row_count != cat["rowCount"]:
            raise DataIntegrityError(
                f"BinaryCIF category {name}: decoded {category.row_count} rows, "
                f"header says {cat['rowCount']}"
            )
        block.categories[name] = category
    return block
