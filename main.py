"""Entry point de desarrollo (sin instalar el paquete).

Lets the CLI run with `python -m main ...` straight from a checkout: the code
lives under `src/`, so without an editable install Python cannot find
`fmdump`.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    project_root = Path(__file__).resolve().parent
    src = project_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from fmdump.cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
