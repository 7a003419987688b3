from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from wishlist_price_watch.http_client import HttpClient
from wishlist_price_watch.monitor import scrape_wishlist
from wishlist_price_watch.snapshot import load_snapshot


def main() -> int:
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        sys.stderr.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    load_dotenv()
    url = os.getenv("WISHLIST_URL", "").strip() or os.getenv("URL", "").strip()
    if not url:
        print("set WISHLIST_URL", file=sys.stderr)
        return 2

    timeout_seconds = float(os.getenv("LIVE_TIMEOUT_SECONDS", "30"))
    max_products = int(os.getenv("LIVE_MAX_PRODUCTS", "50"))
    session_path = Path(os.getenv("SESSION_PATH", "session.json"))
    snapshot = load_snapshot(Path(os.getenv("SNAPSHOT_PATH", "prices.csv")))

    client = HttpClient(timeout_seconds=timeout_seconds, session_path=session_path)
    run = scrape_wishlist(client, url)
    print(f"== {url}", flush=True)
    print(f"ok={run.ok} products={len(run.products)} authenticated={client.authenticated} error={run.error}", flush=True)

    priced = sum(1 for p in run.products if p.price is not None)
    print(f"  Prices: {priced} priced, {len(run.products) - priced} unavailable", flush=True)

    for p in run.products[:max_products]:
        if p.id not in snapshot:
            prior = "new"
        elif snapshot[p.id] is None:
            prior = "was unavailable"
        else:
            prior = f"was {snapshot[p.id]:.2f}"
        price = "-" if p.price is None else f"{p.price:.2f}"
        print(f"- [{p.id}] {p.title} | {price} ({prior}) | {p.link or ''}", flush=True)

    if len(run.products) > max_products:
        print(f"  ... and {len(run.products) - max_products} more products", flush=True)
    return 0 if run.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
