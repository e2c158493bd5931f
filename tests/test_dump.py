"""
Serialization tests.

Validates the text layout written by dumps/dump and that written documents
parse back to equal trees.
"""

import io

import pytest

import kv3
from kv3 import KVObject
from kv3 import KVType
from kv3 import KVValue

from .conftest import GENERIC_FORMAT
from .conftest import HEADER
from .conftest import TEXT_ENCODING


def test_dumps_layout() -> None:
    """
    Validates header, indentation, container placement and trailing commas.
    """
    data = {
        "a": 1,
        "b": [1, 2],
        "c": {"x": "y"},
        "empty_array": [],
        "empty_object": {},
    }
    expected = HEADER + (
        "{\n"
        "\ta = 1\n"
        "\tb =\n"
        "\t[\n"
        "\t\t1,\n"
        "\t\t2,\n"
        "\t]\n"
        "\tc =\n"
        "\t{\n"
        '\t\tx = "y"\n'
        "\t}\n"
        "\tempty_array = []\n"
        "\tempty_object = {}\n"
        "}\n"
    )
    assert kv3.dumps(data) == expected


def test_dumps_integer_indent() -> None:
    text = kv3.dumps({"o": {"k": True}}, indent=2)
    assert text.endswith("{\n  o =\n  {\n    k = true\n  }\n}\n")


def test_dumps_scalars() -> None:
    """
    Validates the literal form of every scalar type.
    """
    root = KVObject(
        [
            ("n", KVValue(KVType.NULL)),
            ("t", KVValue(KVType.BOOLEAN, True)),
            ("i", KVValue(KVType.INT64, -5)),
            ("u", KVValue(KVType.UINT64, 2**64 - 1)),
            ("d", KVValue(KVType.DOUBLE, 0.5)),
            ("e", KVValue(KVType.DOUBLE, 1e16)),
            ("s", KVValue(KVType.STRING, 'say "hi"\t\x01')),
            ("b", KVValue(KVType.BINARY_BLOB, b"\x00\xff")),
            ("z", KVValue(KVType.BINARY_BLOB, b"")),
        ]
    )
    body = kv3.dumps(root).split("\n")[2:-2]
    assert body == [
        "\tn = null",
        "\tt = true",
        "\ti = -5",
        "\tu = 18446744073709551615",
        "\td = 0.5",
        "\te = 1e+16",
        '\ts = "say \\"hi\\"\\t\\u0001"',
        "\tb = #[ 00 ff ]",
        "\tz = #[]",
    ]
    assert kv3.loads(kv3.dumps(root)).root == root


def test_dumps_keys() -> None:
    """
    Validates that only identifier keys are written bare.
    """
    text = kv3.dumps({"plain": 1, "a.b": 2, "with space": 3, "9lives": 4})
    assert "\tplain = 1\n" in text
    assert "\ta.b = 2\n" in text
    assert '\t"with space" = 3\n' in text
    assert '\t"9lives" = 4\n' in text


def test_dumps_flagged_value() -> None:
    root = KVObject(
        [
            (
                "model",
                kv3.KVFlaggedValue(
                    KVType.STRING, "models/a.vmdl", flag=kv3.KVFlag.RESOURCE
                ),
            ),
            (
                "custom",
                kv3.KVFlaggedValue(KVType.STRING, "x", flag="material"),
            ),
        ]
    )
    text = kv3.dumps(root)
    assert '\tmodel = resource:"models/a.vmdl"\n' in text
    assert '\tcustom = material:"x"\n' in text

    doc = kv3.loads(text, extra_flags={"material"})
    assert doc.root == root


def test_dumps_flag_on_non_string() -> None:
    root = KVObject(
        [("n", kv3.KVFlaggedValue(KVType.INT64, 1, flag=kv3.KVFlag.RESOURCE))]
    )
    with pytest.raises(ValueError, match="only be written on STRING"):
        kv3.dumps(root)


@pytest.mark.parametrize(
    "value,multiline",
    [
        ("one\ntwo", True),
        ("one\r\ntwo", True),
        ("\nleading and trailing\n", True),
        ("single line", False),
        ("ends with\r", False),
        ('has """ inside\n', False),
    ],
)
def test_dumps_multiline_strings(value: str, multiline: bool) -> None:
    """
    Validates the triple-quoted form is only used when it round-trips.
    """
    text = kv3.dumps({"s": value})
    assert ('"""' in text and '\\"' not in text) is multiline
    assert kv3.loads(text).root.get_string("s") == value

    quoted = kv3.dumps({"s": value}, multiline_strings=False)
    assert '"""' not in quoted
    assert kv3.loads(quoted).root.get_string("s") == value


def test_round_trip_reference(reference_lf: bytes, reference_crlf: bytes) -> None:
    """
    Validates written reference documents parse back to equal trees.
    """
    for data in (reference_lf, reference_crlf):
        doc = kv3.loads(data)
        again = kv3.loads(kv3.dumps(doc))
        assert again == doc
        assert list(again.root) == list(doc.root)


def test_document_keeps_header_identifiers() -> None:
    """
    Validates a KV3Document writes its own identifiers unless overridden.
    """
    custom_format = "animgraph:version{0}"
    doc = kv3.loads(
        f"<!-- kv3 encoding:{TEXT_ENCODING} format:{custom_format} -->\n{{}}"
    )
    assert f"format:{custom_format} -->" in kv3.dumps(doc)
    assert f"format:{GENERIC_FORMAT} -->" in kv3.dumps(
        doc, format=GENERIC_FORMAT
    )


def test_dump_to_file() -> None:
    buffer = io.StringIO()
    kv3.dump({"a": [1.5]}, buffer)
    assert buffer.getvalue() == kv3.dumps({"a": [1.5]})

    with pytest.raises(TypeError):
        kv3.dump({}, object())  # type: ignore[arg-type]


def test_dumps_rejects_invalid_roots() -> None:
    """
    Validates array roots and non-document inputs.
    """
    with pytest.raises(ValueError):
        kv3.dumps(KVObject.from_values([]))
    with pytest.raises(TypeError):
        kv3.dumps([1, 2])
    with pytest.raises(TypeError, match="not KV3 serializable"):
        kv3.dumps({"a": object()})


def test_dumps_non_finite_double() -> None:
    with pytest.raises(ValueError):
        kv3.dumps({"a": float("nan")})
    with pytest.raises(ValueError):
        kv3.dumps({"a": float("inf")})


@pytest.mark.parametrize(
    "kwargs,error",
    [
        ({"indent": True}, TypeError),
        ({"indent": None}, TypeError),
        ({"multiline_strings": "yes"}, TypeError),
        ({"encoding": ""}, ValueError),
        ({"format": "two words"}, ValueError),
        ({"format": "x-->"}, ValueError),
        ({"encoding": "binary:version{0}"}, ValueError),
    ],
)
def test_encode_config_validation(
    kwargs: dict[str, object], error: type[Exception]
) -> None:
    with pytest.raises(error):
        kv3.EncodeConfig(**kwargs)  # type: ignore[arg-type]
    with pytest.raises(error):
        kv3.dumps({}, **kwargs)


def test_small_uint64_reads_back_as_int64() -> None:
    """
    Validates that integer text carries no signedness.
    """
    root = KVObject(
        [
            ("small", KVValue(KVType.UINT64, 5)),
            ("large", KVValue(KVType.UINT64, 2**63)),
        ]
    )
    parsed = kv3.loads(kv3.dumps(root)).root

    assert parsed["small"] == KVValue(KVType.INT64, 5)
    assert parsed["large"] == KVValue(KVType.UINT64, 2**63)
    assert parsed.get_uint("small") == 5
    assert kv3.dumps(parsed) == kv3.dumps(root)
