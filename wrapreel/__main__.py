"""Allow ``python -m wrapreel``."""

from .cli import main

raise SystemExit(main())
