"""Module executed when ``python -m blobvault`` is invoked."""

from __future__ import annotations

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
