"""Project core: domain, binary layout, codec and services.

Nothing under `core` performs I/O. Files, JSON and terminals live in
`fmdump.adapters` and `fmdump.cli`.
"""
