from __future__ import annotations

import sys

from .cli import main as _cli_main


def main(argv: list[str] | None = None) -> int:
    """Console entry point; a bare ``switop`` starts the dashboard."""
    args = list(sys.argv[1:] if argv is None else argv)
    return int(_cli_main(args or ["run"]))


if __name__ == "__main__":
    raise SystemExit(main())
