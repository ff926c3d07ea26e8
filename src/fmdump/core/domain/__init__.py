"""Modelos y entidades del dominio.

Plain, strict data structures (Pydantic v2) describing the contents of a
fiscal-memory image. The domain knows nothing about offsets or files.
"""
