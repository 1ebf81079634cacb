"""Allow ``python -m hermes``."""

from hermes.cli import main

raise SystemExit(main())
