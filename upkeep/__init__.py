"""
upkeep — interactive dependency upgrades for JavaScript monorepos

upkeep walks every workspace of a multi-workspace repository, filters the
declared dependencies through a compact exclusion language, and offers a
small set of upgrade candidates (current, compatible, latest) for each of
them in a live terminal list.

Features include:
    • Exclusion rules scoped by workspace or directory, with name globs
      and version constraints (``@app/web#react@^18``)
    • Progressive, bounded-concurrency resolution against the npm registry
    • Order-stable live display that stays responsive with hundreds of rows
    • In-place manifest updates with optional backups
"""

from __future__ import annotations

from upkeep.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "upkeep Contributors"
__license__ = "Apache-2.0"
__description__ = "Interactive dependency upgrades for multi-workspace repositories."

__all__ = [
    "__version__",
]
