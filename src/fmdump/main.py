"""Console entry point.

Entry point for the `fmdump` console script and for `python -m fmdump.main`.
"""

from __future__ import annotations

import sys

# Windows terminals default to a legacy code page; serial numbers and tax ids
# are Cyrillic.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from fmdump.cli.main import run  # noqa: E402


def main() -> None:
    run()


if __name__ == "__main__":
    main()
