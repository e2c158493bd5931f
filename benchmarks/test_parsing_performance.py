"""
Parsing performance benchmarks comparing kv3 against JSON libraries.

Each generated document is parsed once as KV3 and once as the equivalent
JSON text, which gives a baseline for the same content:
- Standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)
- kv3 (this package)
"""

import json
from collections.abc import Callable
from typing import Any

import orjson
import pytest
import ujson  # type: ignore[import-untyped]

import kv3
from benchmarks.data_generators import DATA_TYPES
from benchmarks.data_generators import generate_test_data

_PARSERS: list[tuple[str, Callable[[Any], Any]]] = [
    ("stdlib_json", json.loads),
    ("orjson", orjson.loads),
    ("ujson", ujson.loads),
    ("kv3", kv3.loads),
]


class TestParsingBenchmarks:
    """Benchmarks for parsing the same content across libraries."""

    @pytest.mark.parametrize("data_type", DATA_TYPES)
    @pytest.mark.parametrize("parser,parse_func", _PARSERS)
    def test_parsing(
        self,
        benchmark: Any,
        data_type: str,
        parser: str,
        parse_func: Callable[[Any], Any],
    ) -> None:
        """Benchmarks parsing of one data type with one library."""
        benchmark.group = data_type
        document = generate_test_data(data_type)

        if parser == "kv3":
            result = benchmark(parse_func, document.kv3_text)
            assert isinstance(result, kv3.KV3Document)
        elif parser == "orjson":
            # orjson expects bytes for optimal performance
            result = benchmark(parse_func, document.json_text.encode("utf-8"))
            assert isinstance(result, dict)
        else:
            result = benchmark(parse_func, document.json_text)
            assert isinstance(result, dict)

    @pytest.mark.benchmark(group="kv3_bytes")
    def test_kv3_bytes_input(self, benchmark: Any) -> None:
        """Benchmarks parsing from UTF-8 bytes, including decoding."""
        data = generate_test_data("model_asset").kv3_text.encode("utf-8")
        result = benchmark(kv3.loads, data)
        assert result.root.get_array("m_animations").count == 40

    @pytest.mark.benchmark(group="kv3_dumps")
    def test_kv3_serialization(self, benchmark: Any) -> None:
        """Benchmarks writing a parsed document back to text."""
        document = kv3.loads(generate_test_data("model_asset").kv3_text)
        text = benchmark(kv3.dumps, document)
        assert kv3.loads(text) == document

    def test_content_matches_json(self) -> None:
        """Verifies every generated KV3 document decodes to its JSON twin."""
        for data_type in DATA_TYPES:
            document = generate_test_data(data_type)
            parsed = kv3.loads(document.kv3_text).root.to_python()
            assert parsed == json.loads(document.json_text), data_type
