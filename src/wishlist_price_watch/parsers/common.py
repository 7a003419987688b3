from __future__ import annotations

import math
import re
from urllib.parse import urljoin, urlparse, urlunparse


_WS_RE = re.compile(r"\s+")


def compact_ws(text: str) -> str:
    return _WS_RE.sub(" ", (text or "").strip())


_CURRENCY_TOKEN_LIST = [
    "CDN$",
    "CA$",
    "C$",
    "US$",
    "A$",
    "$",
    "€",  # EUR symbol
    "£",  # GBP symbol
    "¥",  # JPY/CNY symbol
    "₹",  # INR symbol
    "USD",
    "CAD",
    "EUR",
    "GBP",
    "AUD",
    "JPY",
    "INR",
]
_CURRENCY_RE = re.compile(
    "|".join(sorted((re.escape(t) for t in _CURRENCY_TOKEN_LIST), key=len, reverse=True)),
    re.IGNORECASE,
)
_AMOUNT_RE = re.compile(r"-?\d[\d,.]*|-?[Ii]nfinity|NaN")


def _normalize_amount(amount: str) -> str:
    s = compact_ws(amount).replace(" ", "").rstrip(".,")
    if "," in s and "." in s:
        # "1.299,00" (decimal comma) vs "1,299.00" (thousands comma).
        if s.rfind(",") > s.rfind("."):
            return s.replace(".", "").replace(",", ".")
        return s.replace(",", "")
    if s.count(",") > 1 and "." not in s:
        return s.replace(",", "")
    if s.count(",") == 1 and "." not in s:
        left, right = s.split(",", 1)
        if len(right) <= 2:
            return f"{left}.{right}"
        return f"{left}{right}"
    return s


def parse_price(text: str | None) -> float | None:
    """
    Turn a price string ("$1,299.00", "89.99", "-Infinity", "") into a
    non-negative finite float, or None when no usable price is present.
    """
    if text is None:
        return None
    t = _CURRENCY_RE.sub(" ", compact_ws(str(text)))
    m = _AMOUNT_RE.search(t)
    if not m:
        return None
    try:
        value = float(_normalize_amount(m.group(0)))
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def absolute_link(href: str | None, *, base_url: str) -> str | None:
    href = (href or "").strip()
    if not href or href.startswith(("javascript:", "#")):
        return None
    url = urljoin(base_url, href)
    p = urlparse(url)
    if p.scheme not in ("http", "https"):
        return None
    # Drop tracking fragments; keep the query, it often carries the item reference.
    return urlunparse((p.scheme, p.netloc, p.path, p.params, p.query, ""))
