from __future__ import annotations

import unittest

from wishlist_price_watch.models import DELTA, RESTOCK, ChangeEvent, ProductRecord
from wishlist_price_watch.reconcile import reconcile, snapshot_of


def _p(pid: str, price: float | None, *, title: str | None = None, link: str | None = None) -> ProductRecord:
    return ProductRecord(id=pid, title=title or f"Item {pid}", price=price, link=link)


class TestReconcileRules(unittest.TestCase):
    def test_first_sighting_is_silent_and_recorded(self) -> None:
        current = [_p("A", 12.5), _p("B", None)]
        self.assertEqual(reconcile(current, {}, 10), [])
        self.assertEqual(snapshot_of(current), {"A": 12.5, "B": None})

    def test_restock_emits_single_event_with_zero_before(self) -> None:
        changes = reconcile([_p("X", 25.0)], {"X": None}, 10)
        self.assertEqual(len(changes), 1)
        self.assertEqual(changes[0].kind, RESTOCK)
        self.assertEqual(changes[0].before, 0)
        self.assertEqual(changes[0].after, 25.0)

    def test_restock_below_threshold_still_reported(self) -> None:
        changes = reconcile([_p("X", 1.0)], {"X": None}, 10)
        self.assertEqual([c.kind for c in changes], [RESTOCK])

    def test_delta_threshold_is_inclusive(self) -> None:
        self.assertEqual(
            reconcile([_p("A", 110.0)], {"A": 100.0}, 10),
            [ChangeEvent(title="Item A", link=None, before=100.0, after=110.0, kind=DELTA)],
        )
        self.assertEqual(reconcile([_p("A", 109.99)], {"A": 100.0}, 10), [])

    def test_delta_uses_absolute_difference(self) -> None:
        down = reconcile([_p("A", 40.0)], {"A": 50.0}, 10)
        up = reconcile([_p("A", 50.0)], {"A": 40.0}, 10)
        self.assertEqual(len(down), 1)
        self.assertEqual(len(up), 1)
        self.assertEqual(down[0].change, -10.0)
        self.assertEqual(up[0].change, 10.0)

    def test_float_noise_does_not_hide_boundary(self) -> None:
        changes = reconcile([_p("A", 30.1)], {"A": 40.1}, 10)
        self.assertEqual(len(changes), 1)

    def test_zero_threshold_reports_unchanged_prices(self) -> None:
        changes = reconcile([_p("A", 5.0)], {"A": 5.0}, 0)
        self.assertEqual([c.kind for c in changes], [DELTA])

    def test_going_out_of_stock_is_not_reported(self) -> None:
        self.assertEqual(reconcile([_p("A", None)], {"A": 30.0}, 10), [])

    def test_still_unavailable_is_silent(self) -> None:
        self.assertEqual(reconcile([_p("A", None)], {"A": None}, 10), [])

    def test_items_missing_from_current_are_ignored(self) -> None:
        self.assertEqual(reconcile([_p("A", 10.0)], {"A": 10.0, "gone": 99.0}, 10), [])

    def test_negative_threshold_rejected(self) -> None:
        with self.assertRaises(ValueError):
            reconcile([_p("A", 1.0)], {"A": 50.0}, -1)

    def test_is_repeatable(self) -> None:
        current = [_p("A", 90.0), _p("B", 20.0)]
        previous = {"A": 100.0, "B": None}
        self.assertEqual(reconcile(current, previous, 10), reconcile(current, previous, 10))

    def test_events_carry_title_and_link(self) -> None:
        changes = reconcile([_p("A", 80.0, title="Headphones", link="https://shop.test/dp/A")], {"A": 100.0}, 10)
        self.assertEqual(changes[0].title, "Headphones")
        self.assertEqual(changes[0].link, "https://shop.test/dp/A")


class TestReconcileScenario(unittest.TestCase):
    def test_mixed_wishlist(self) -> None:
        previous = {"A": 100.0, "B": None, "C": 50.0}
        current = [_p("A", 90.0), _p("B", 20.0), _p("C", 50.0), _p("D", 15.0)]

        changes = reconcile(current, previous, 10)

        self.assertEqual(
            [(c.title, c.kind, c.before, c.after) for c in changes],
            [("Item A", DELTA, 100.0, 90.0), ("Item B", RESTOCK, 0, 20.0)],
        )
        self.assertEqual(snapshot_of(current), {"A": 90.0, "B": 20.0, "C": 50.0, "D": 15.0})


if __name__ == "__main__":
    unittest.main()
