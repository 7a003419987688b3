from __future__ import annotations

import json
import random
import time
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import requests
from requests import Response


DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_6) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
]

_SIGN_IN_PATH_MARKERS = ("/ap/signin", "/signin", "/login")


@dataclass(frozen=True)
class FetchResult:
    url: str
    status_code: int | None
    ok: bool
    text: str | None
    error: str | None
    elapsed_ms: int


def load_session_cookies(path: Path) -> list[dict]:
    """
    Read cookies from a browser storage-state file:
    {"cookies": [{"name": ..., "value": ..., "domain": ..., "path": ...}, ...]}

    A missing or unreadable file yields no cookies (anonymous session).
    """
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return []
    raw = data.get("cookies") if isinstance(data, dict) else None
    if not isinstance(raw, list):
        return []
    cookies: list[dict] = []
    for c in raw:
        if not isinstance(c, dict):
            continue
        name = c.get("name")
        value = c.get("value")
        if isinstance(name, str) and isinstance(value, str) and name:
            cookies.append(c)
    return cookies


class HttpClient:
    def __init__(
        self,
        *,
        timeout_seconds: float,
        session_path: Path | None = None,
        user_agents: list[str] | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._user_agents = user_agents or DEFAULT_USER_AGENTS
        self._session_obj: requests.Session | None = None
        self._cookies = load_session_cookies(session_path) if session_path else []

    @property
    def authenticated(self) -> bool:
        return bool(self._cookies)

    def _session(self) -> requests.Session:
        if self._session_obj is not None:
            return self._session_obj
        s = requests.Session()
        for c in self._cookies:
            s.cookies.set(
                c["name"],
                c["value"],
                domain=c.get("domain") or "",
                path=c.get("path") or "/",
            )
        self._session_obj = s
        return s

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": random.choice(self._user_agents),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }

    @staticmethod
    def _looks_like_sign_in(url: str) -> bool:
        try:
            path = urlparse(url).path.lower()
        except ValueError:
            return False
        return any(m in path for m in _SIGN_IN_PATH_MARKERS)

    def fetch_text(self, url: str) -> FetchResult:
        started = time.perf_counter()
        try:
            resp: Response = self._session().get(
                url,
                headers=self._headers(),
                timeout=(self._timeout_seconds, self._timeout_seconds),
                allow_redirects=True,
            )
        except requests.RequestException as e:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            return FetchResult(url=url, status_code=None, ok=False, text=None, error=f"{type(e).__name__}: {e}", elapsed_ms=elapsed_ms)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        final_url = str(resp.url)
        if self._looks_like_sign_in(final_url) and not self._looks_like_sign_in(url):
            return FetchResult(
                url=final_url,
                status_code=resp.status_code,
                ok=False,
                text=None,
                error="Session expired (redirected to sign-in)",
                elapsed_ms=elapsed_ms,
            )
        ok = 200 <= resp.status_code < 400
        return FetchResult(
            url=final_url,
            status_code=resp.status_code,
            ok=ok,
            text=resp.text if ok else None,
            error=None if ok else f"HTTP {resp.status_code}",
            elapsed_ms=elapsed_ms,
        )
