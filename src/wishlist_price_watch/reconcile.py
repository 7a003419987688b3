from __future__ import annotations

from typing import Iterable, Mapping

from .models import DELTA, RESTOCK, ChangeEvent, ProductRecord, Snapshot


def reconcile(
    current: Iterable[ProductRecord],
    previous: Mapping[str, float | None],
    delta_threshold: float,
) -> list[ChangeEvent]:
    """
    Compare the current wishlist against the previous snapshot.

    - An item that was known but unpriced and now has a price is a RESTOCK
      (before=0 is a marker, not an observed price).
    - An item priced in both runs whose price moved by at least
      `delta_threshold` (either direction) is a DELTA.
    - Everything else is silent: first sightings, items still unpriced and
      items going out of stock.

    Events keep the order of `current`.
    """
    if delta_threshold < 0:
        raise ValueError(f"delta_threshold must be >= 0, got {delta_threshold!r}")

    changes: list[ChangeEvent] = []
    for product in current:
        if product.id not in previous:
            continue
        prior_price = previous[product.id]
        if product.price is None:
            continue

        if prior_price is None:
            changes.append(
                ChangeEvent(title=product.title, link=product.link, before=0.0, after=product.price, kind=RESTOCK)
            )
            continue

        # Rounded so that e.g. 40.1 -> 30.1 still counts as a move of exactly 10.
        diff = round(abs(product.price - prior_price), 9)
        if diff >= delta_threshold:
            changes.append(
                ChangeEvent(title=product.title, link=product.link, before=prior_price, after=product.price, kind=DELTA)
            )
    return changes


def snapshot_of(current: Iterable[ProductRecord]) -> Snapshot:
    return {p.id: p.price for p in current}
