"""Infrastructure adapters: files, JSON and logging.

The core only knows `FiscalDump` and byte buffers; everything that touches the
filesystem lives here.
"""
