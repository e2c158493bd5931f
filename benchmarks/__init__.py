"""
Benchmark suite for kv3 parsing performance.

Compares kv3 against standard JSON libraries parsing the same content:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures parsing speed and memory usage across different data shapes.
"""
