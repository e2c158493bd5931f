"""
Test data generators for KV3 parsing benchmarks.

Builds plain Python structures and renders each one twice, as KV3 text and
as JSON text, so the same content can be fed to every parser:
- Different sizes (small/large)
- Different shapes (flat/nested/array heavy)
- String-heavy content with escapes and multi-line literals
"""

import json
import random
import string
from dataclasses import dataclass
from typing import Any

import kv3

# Constants for random data generation
_INT_TYPE = 1
_FLOAT_TYPE = 2
_STRING_TYPE = 3
_BOOL_TYPE = 4
_NULL_TYPE = 5
_ESCAPE_PROBABILITY = 0.3

DATA_TYPES = (
    "small_object",
    "model_asset",
    "mixed_array",
    "nested_structure",
    "string_heavy",
)


@dataclass(frozen=True)
class BenchmarkDocument:
    """The same content rendered as KV3 and as JSON."""

    kv3_text: str
    json_text: str


def generate_test_data(data_type: str) -> BenchmarkDocument:
    """Generates a benchmark document of the specified type."""
    generators = {
        "small_object": _generate_small_object,
        "model_asset": _generate_model_asset,
        "mixed_array": _generate_mixed_array,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    data = generators[data_type]()
    return BenchmarkDocument(kv3.dumps(data), json.dumps(data))


def _generate_small_object() -> dict[str, Any]:
    """Generates a small object (< 1KB) with basic key-value pairs."""
    return {
        "m_nId": 12345,
        "m_name": "npc_dota_hero_axe",
        "m_bEnabled": True,
        "m_flScale": 1.25,
        "m_vecOrigin": [0.0, 128.5, -64.0],
        "m_metadata": {"m_source": "compiler", "m_version": 3},
    }


def _generate_model_asset() -> dict[str, Any]:
    """Generates a large model-like document (> 10KB) with many fields."""
    return {
        "m_materialGroups": [
            {
                "m_name": _random_string(10),
                "m_materials": [
                    f"materials/{_random_string(8)}.vmat" for _ in range(4)
                ],
            }
            for _ in range(10)
        ],
        "m_animations": [
            {
                "m_name": f"anim_{i:03d}",
                "fps": 30.0,
                "m_nFrameCount": random.randint(10, 300),
                "m_movementArray": [
                    {
                        "endframe": random.randint(1, 300),
                        "motionflags": random.randint(0, 31),
                        "v0": round(random.uniform(0, 300), 3),
                        "v1": round(random.uniform(0, 300), 3),
                        "angle": round(random.uniform(-180, 180), 3),
                        "vector": [
                            round(random.uniform(-1, 1), 6) for _ in range(3)
                        ],
                        "position": [
                            round(random.uniform(-512, 512), 3)
                            for _ in range(3)
                        ],
                    }
                    for _ in range(4)
                ],
            }
            for i in range(40)
        ],
        "m_boneNames": [_random_string(12) for _ in range(64)],
    }


def _generate_mixed_array() -> dict[str, Any]:
    """Generates a large array with mixed data types."""
    array: list[Any] = []

    # Add various data types
    for i in range(200):
        choice = random.randint(1, 6)
        if choice == _INT_TYPE:
            array.append(random.randint(-1000, 1000))
        elif choice == _FLOAT_TYPE:
            array.append(round(random.uniform(-100.0, 100.0), 3))
        elif choice == _STRING_TYPE:
            array.append(_random_string(random.randint(5, 30)))
        elif choice == _BOOL_TYPE:
            array.append(random.choice([True, False]))
        elif choice == _NULL_TYPE:
            array.append(None)
        else:
            # Nested object
            array.append(
                {
                    "index": i,
                    "value": _random_string(10),
                    "score": round(random.uniform(0, 100), 2),
                }
            )

    # KV3 documents always have an object root
    return {"items": array}


def _generate_nested_structure() -> dict[str, Any]:
    """Generates deeply nested structure."""

    def create_nested_dict(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(10)}

        return {
            "level": depth,
            "data": _random_string(15),
            "items": [create_nested_dict(depth - 1) for _ in range(3)],
            "nested": create_nested_dict(depth - 1),
        }

    return create_nested_dict(6)


def _generate_string_heavy() -> dict[str, Any]:
    """Generates strings with escapes and embedded line breaks."""

    def create_escaped_string() -> str:
        """Creates a string mixing plain characters and escapable ones."""
        chars = []
        for _ in range(50):
            if random.random() < _ESCAPE_PROBABILITY:
                chars.append(random.choice(['"', "\\", "\t", "/"]))
            else:
                chars.append(
                    random.choice(string.ascii_letters + string.digits + " ")
                )
        return "".join(chars)

    def create_paragraph() -> str:
        return "\n".join(_random_string(40) for _ in range(5))

    return {
        "strings": [create_escaped_string() for _ in range(100)],
        "paragraphs": [create_paragraph() for _ in range(30)],
        "mixed_content": {
            f"key_{i}": {
                "description": create_escaped_string(),
                "path": f"C:\\Users\\{_random_string(8)}\\file_{i}.txt",
            }
            for i in range(20)
        },
    }


def _random_string(length: int) -> str:
    """Generates a random string of specified length."""
    return "".join(random.choices(string.ascii_letters, k=length))
