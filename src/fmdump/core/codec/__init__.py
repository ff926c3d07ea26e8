"""Byte-level codec for the fiscal-memory image.

- `primitives`: integers, cp1251 text, packed timestamps.
- `checksum`: erased-flash detection and the per-record XOR checksum.
- `records`: one decode/encode pair per record kind.
"""
