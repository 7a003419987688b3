from __future__ import annotations

import os
import sys
import time
from dataclasses import dataclass

from .config import RunConfig
from .emailer import send_report
from .errors import ExtractionError, NotificationError
from .http_client import HttpClient
from .models import DELTA, RESTOCK, ProductRecord, RunSummary
from .parsers.wishlist import WishlistParser
from .reconcile import reconcile
from .snapshot import load_snapshot, save_snapshot
from .timeutil import utc_now_iso


@dataclass(frozen=True)
class WishlistRun:
    ok: bool
    error: str | None
    duration_ms: int
    products: list[ProductRecord]


def _log_enabled() -> bool:
    return os.getenv("MONITOR_LOG", "1").strip() != "0"


def _log(msg: str) -> None:
    if _log_enabled():
        print(f"[monitor] {msg}", flush=True)


def _warn(msg: str) -> None:
    print(f"[monitor] WARNING {msg}", file=sys.stderr, flush=True)


def scrape_wishlist(client: HttpClient, url: str, *, parser: WishlistParser | None = None) -> WishlistRun:
    started = time.perf_counter()
    fetch = client.fetch_text(url)
    if not fetch.ok or not fetch.text:
        duration_ms = int((time.perf_counter() - started) * 1000)
        return WishlistRun(ok=False, error=fetch.error or "fetch failed", duration_ms=duration_ms, products=[])

    parser = parser or WishlistParser()
    try:
        products = parser.parse(fetch.text, base_url=fetch.url or url)
    except Exception as e:
        duration_ms = int((time.perf_counter() - started) * 1000)
        return WishlistRun(ok=False, error=f"{type(e).__name__}: {e}", duration_ms=duration_ms, products=[])

    duration_ms = int((time.perf_counter() - started) * 1000)
    if not products:
        return WishlistRun(ok=False, error="no wishlist items found on page", duration_ms=duration_ms, products=[])
    return WishlistRun(ok=True, error=None, duration_ms=duration_ms, products=products)


def run_monitor(cfg: RunConfig, *, client: HttpClient | None = None) -> RunSummary:
    """
    One pass: extract, load the previous snapshot, reconcile, notify if
    anything changed, then persist the current wishlist as the new snapshot.

    Extraction failures raise ExtractionError before anything is written.
    Notification failures are reported but never block the snapshot write.
    """
    started_at = utc_now_iso()
    if client is None:
        client = HttpClient(timeout_seconds=cfg.timeout_seconds, session_path=cfg.session_path)

    _log(
        f"start url={cfg.source_url} threshold={cfg.delta_threshold:g} "
        f"snapshot={cfg.snapshot_path} authenticated={client.authenticated} dry_run={cfg.dry_run}"
    )

    run = scrape_wishlist(client, cfg.source_url)
    if not run.ok:
        _log(f"error products=0 {run.duration_ms}ms :: {run.error}")
        raise ExtractionError(run.error or "extraction failed")
    _log(f"ok products={len(run.products)} {run.duration_ms}ms")

    previous = load_snapshot(cfg.snapshot_path)
    _log(f"loaded snapshot entries={len(previous)}")

    changes = reconcile(run.products, previous, cfg.delta_threshold)
    restocks = sum(1 for c in changes if c.kind == RESTOCK)
    deltas = sum(1 for c in changes if c.kind == DELTA)
    for c in changes:
        _log(f"{c.kind.lower()} {c.title!r} {c.before:.2f} -> {c.after:.2f}")

    notified = False
    notify_error: str | None = None
    if not changes:
        _log(f"no price changes >= {cfg.delta_threshold:g}")
    elif cfg.dry_run:
        _log(f"dry-run: skipping notification for {len(changes)} change(s)")
    elif cfg.email is None:
        _warn(f"email not configured; {len(changes)} change(s) not sent")
    else:
        try:
            send_report(cfg.email, changes, timeout_seconds=cfg.timeout_seconds)
            notified = True
            _log(f"alert email sent to {', '.join(cfg.email.recipients)}")
        except NotificationError as e:
            notify_error = str(e)
            _warn(f"notification failed: {notify_error}")

    save_snapshot(cfg.snapshot_path, run.products)
    _log(f"saved snapshot entries={len(run.products)} path={cfg.snapshot_path}")

    summary = RunSummary(
        started_at=started_at,
        finished_at=utc_now_iso(),
        products=len(run.products),
        changes=len(changes),
        restocks=restocks,
        deltas=deltas,
        notified=notified,
        notify_error=notify_error,
        snapshot_path=str(cfg.snapshot_path),
    )
    _log(f"done changes={summary.changes} restocks={restocks} deltas={deltas} notified={notified}")
    return summary
