"""Legacy entry point for the WrapReel CLI."""

from __future__ import annotations

from pathlib import Path
import os
import sys


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)

    # Check for --debug flag BEFORE any imports that use logging
    if "--debug" in args:
        os.environ["WRAPREEL_TRACE"] = "1"
        args.remove("--debug")
        args = ["--log-level", "DEBUG", *args]

    # A bare items file means "plan it"
    if len(args) == 1 and Path(args[0]).suffix == ".json" and Path(args[0]).is_file():
        args = ["plan", args[0]]

    from wrapreel.cli import main as cli_main

    return cli_main(args)


if __name__ == "__main__":
    raise SystemExit(main())
