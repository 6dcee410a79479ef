from __future__ import annotations

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, TextIO

logger = logging.getLogger(__name__)


def ensure_outdir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def open_textmaybe_gzip(path: str | Path, mode: str = "rt") -> TextIO:
    p = str(path)
    if p.endswith(".gz"):
        return gzip.open(p, mode, encoding="utf-8")  # type: ignore[return-value]
    return open(p, mode, encoding="utf-8")


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def write_tsv(path: str | Path, header: List[str], rows: Iterable[Iterable[Any]]) -> int:
    """Write a tab-separated table (gzip if the name ends in .gz); return the row count."""
    n = 0
    with open_textmaybe_gzip(path, "wt") as fh:
        fh.write("\t".join(header) + "\n")
        for row in rows:
            fh.write("\t".join(str(x) for x in row) + "\n")
            n += 1
    return n
