"""SubcloneCompat: placement and compatibility checks between subclone trees.

Most users should use the CLI:

    subclonecompat compare --set1 ... --set2 ... --outdir ...

The core functions are importable for scripting and tests:

    from subclonecompat.placement import check_placement, tree_merge

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
