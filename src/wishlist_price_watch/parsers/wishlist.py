from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup

from ..models import ProductRecord
from .common import absolute_link, compact_ws, parse_price


@dataclass(frozen=True)
class WishlistParserConfig:
    item_selector: str = "li[data-itemid]"
    legacy_item_selector: str = "li.g-item-sortable"
    name_selector: str = '[id^="itemName_"]'
    visible_price_selector: str = ".a-price .a-offscreen"


class WishlistParser:
    """
    Wishlist pages list one `<li data-itemid=...>` per item. The list element
    carries the machine-readable price in `data-price` ("-Infinity" when the
    item is unavailable); the title lives in the `itemName_<id>` anchor.

    Items without `data-itemid` fall back to their title as identity. That is
    a degraded mode: two items sharing a title collapse into one, and a
    renamed item looks new.
    """

    def __init__(self, cfg: WishlistParserConfig | None = None) -> None:
        self._cfg = cfg or WishlistParserConfig()

    def parse(self, html: str, *, base_url: str) -> list[ProductRecord]:
        soup = BeautifulSoup(html, "lxml")
        items = soup.select(self._cfg.item_selector)
        if not items:
            items = soup.select(self._cfg.legacy_item_selector)

        products: list[ProductRecord] = []
        seen: set[str] = set()
        for item in items:
            name_el = item.select_one(self._cfg.name_selector)
            title = ""
            if name_el is not None:
                title = compact_ws(name_el.get("title") or name_el.get_text(" ", strip=True))

            pid = compact_ws(item.get("data-itemid") or "") or title
            if not pid or pid in seen:
                continue
            seen.add(pid)

            price = parse_price(item.get("data-price"))
            if price is None and "data-price" not in item.attrs:
                visible = item.select_one(self._cfg.visible_price_selector)
                if visible is not None:
                    price = parse_price(visible.get_text(" ", strip=True))

            link = None
            if name_el is not None and name_el.name == "a":
                link = absolute_link(name_el.get("href"), base_url=base_url)

            products.append(ProductRecord(id=pid, title=title or pid, price=price, link=link))
        return products
