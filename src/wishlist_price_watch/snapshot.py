from __future__ import annotations

import csv
import io
import math
from decimal import Decimal
from pathlib import Path
from typing import Iterable

from .models import ProductRecord, Snapshot


FIELDNAMES = ["id", "title", "price", "link"]


def decode_price(cell: str | None) -> float | None:
    """Strict decode of a stored price: a bare non-negative decimal, else None."""
    if cell is None or "_" in cell:
        return None
    try:
        value = float(cell.strip())
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def encode_price(value: float | None) -> str:
    """Fixed-point, shortest form: 25.0 -> "25", 1e16 -> "10000000000000000"."""
    if value is None:
        return ""
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def load_snapshot(path: Path) -> Snapshot:
    """
    Read the previous run's prices. A missing file is a first run and yields
    an empty snapshot. Unusable prices decode to None; rows without an id are
    skipped. Undecodable bytes are replaced so one bad row cannot block the
    load. Files from before the `id` column existed are keyed by title.
    """
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8-sig", errors="replace")
    reader = csv.DictReader(io.StringIO(text))
    fields = reader.fieldnames or []
    id_field = "id" if "id" in fields else "title"

    snapshot: Snapshot = {}
    for row in reader:
        pid = (row.get(id_field) or "").strip()
        if not pid:
            continue
        snapshot[pid] = decode_price(row.get("price"))
    return snapshot


def save_snapshot(path: Path, current: Iterable[ProductRecord]) -> None:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=FIELDNAMES, lineterminator="\n")
    writer.writeheader()
    for p in current:
        writer.writerow(
            {
                "id": p.id,
                "title": p.title,
                "price": encode_price(p.price),
                "link": p.link or "",
            }
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    # Replace rather than update in place so no stale rows survive.
    path.unlink(missing_ok=True)
    path.write_text(buf.getvalue(), encoding="utf-8")
