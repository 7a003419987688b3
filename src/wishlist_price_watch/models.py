from __future__ import annotations

from dataclasses import dataclass


RESTOCK = "RESTOCK"
DELTA = "DELTA"

# id -> last known price; None means "seen but unpriced".
Snapshot = dict[str, float | None]


@dataclass(frozen=True)
class ProductRecord:
    id: str
    title: str
    price: float | None
    link: str | None = None


@dataclass(frozen=True)
class ChangeEvent:
    title: str
    link: str | None
    before: float
    after: float
    kind: str

    @property
    def change(self) -> float:
        return self.after - self.before


@dataclass(frozen=True)
class RunSummary:
    started_at: str
    finished_at: str
    products: int
    changes: int
    restocks: int
    deltas: int
    notified: bool
    notify_error: str | None
    snapshot_path: str
