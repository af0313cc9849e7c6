import msgpack
import numpy as np
import pytest

from protein_surface.errors import DataIntegrityError
from protein_surface.io.bcif_parser import decode_data, parse_bcif
from protein_surface.io.cif_parser import parse_cif_text
from protein_surface.structure.loader import models_from_block


def test_integer_packing() -> None:
    data = np.array([1, 127, 73, -3], dtype="<i1").tobytes()
    encodings = [
        {"kind": "IntegerPacking", "byteCount": 1, "isUnsigned": False, "srcSize": 3},
        {"kind": "ByteArray", "type": 1},
    ]
    assert decode_data(data, encodings).tolist() == [1, 200, -3]


def test_delta_and_run_length() -> None:
    data = np.array([0, 1, 1, 3], dtype="<i4").tobytes()
    encodings = [
        {"kind": "Delta", "origin": 5, "srcType": 3},
        {"kind": "RunLength", "srcType": 3, "srcSize": 4},
        {"kind": "ByteArray", "type": 3},
    ]
    assert decode_data(data, encodings).tolist() == [5, 6, 7, 8]


def test_fixed_point() -> None:
    data = np.array([1234, -5500], dtype="<i4").tobytes()
    encodings = [
        {"kind": "FixedPoint", "factor": 1000, "srcType": 33},
        {"kind": "ByteArray", "type": 3},
    ]
    np.testing.assert_allclose(decode_data(data, encodings), [1.234, -5.5])


def test_interval_quantization() -> None:
    data = np.array([0, 2, 4], dtype="<u1").tobytes()
    encodings = [
        {"kind": "IntervalQuantization", "min": 0.0, "max": 1.0, "numSteps": 5, "srcType": 32},
        {"kind": "ByteArray", "type": 4},
    ]
    np.testing.assert_allclose(decode_data(data, encodings), [0.0, 0.5, 1.0])


def test_string_array_with_missing_values() -> None:
    enc = {
        "kind": "StringArray",
        "dataEncoding": [{"kind": "ByteArray", "type": 3}],
        "stringData": "ABB",
        "offsetEncoding": [{"kind": "ByteArray", "type": 3}],
        "offsets": np.array([0, 1, 3], dtype="<i4").tobytes(),
    }
    data = np.array([0, 1, -1, 0], dtype="<i4").tobytes()
    assert decode_data(data, [enc]) == ["A", "BB", None, "A"]


def test_unknown_encoding() -> None:
    with pytest.raises(DataIntegrityError):
        decode_data(b"", [{"kind": "Zstd"}])


def test_not_msgpack() -> None:
    with pytest.raises(DataIntegrityError):
        parse_bcif(msgpack.packb([1, 2, 3]))


def test_same_model_as_text_cif(tiny_cif_text, tiny_bcif_bytes) -> None:
    """A BinaryCIF copy of the tiny entry loads into the same model."""
    text_model = models_from_block(parse_cif_text(tiny_cif_text))[0]
    bin_model = models_from_block(parse_bcif(tiny_bcif_bytes))[0]

    assert bin_model.chains == text_model.chains
    assert bin_model.entities == text_model.entities
    assert bin_model.atoms.id.tolist() == text_model.atoms.id.tolist()
    assert bin_model.atoms.label_seq_id.tolist() == text_model.atoms.label_seq_id.tolist()
    np.testing.assert_allclose(bin_model.atoms.coords, text_model.atoms.coords)
    assert set(bin_model.assemblies) == {"1", "2"}
    np.testing.assert_allclose(bin_model.assemblies["2"][0].operators[1].vector, [50.0, 0.0, 0.0])
