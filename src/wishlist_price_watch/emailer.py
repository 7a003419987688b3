from __future__ import annotations

import html
import os
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Mapping

from .errors import ConfigError, NotificationError
from .models import RESTOCK, ChangeEvent


DEFAULT_SUBJECT = "Wishlist price alert"


@dataclass(frozen=True)
class EmailConfig:
    smtp_host: str
    smtp_port: int
    username: str
    password: str
    sender: str
    recipients: tuple[str, ...]
    use_tls: bool = True
    subject: str = DEFAULT_SUBJECT


def _first(env: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return ""


def load_email_config(env: Mapping[str, str] | None = None) -> EmailConfig | None:
    """
    Build the SMTP settings from the environment. GMAIL_USER / GMAIL_PASS are
    accepted as a shortcut for Gmail with an app password. Returns None when
    no credentials are configured (notifications disabled).
    """
    env = os.environ if env is None else env
    username = _first(env, "SMTP_USERNAME", "GMAIL_USER")
    password = _first(env, "SMTP_PASSWORD", "GMAIL_PASS")
    if not username or not password:
        return None

    raw_port = _first(env, "SMTP_PORT") or "465"
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigError(f"SMTP_PORT must be an integer, got {raw_port!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"SMTP_PORT out of range, got {raw_port!r}")
    sender = _first(env, "EMAIL_FROM") or username
    recipients = tuple(r.strip() for r in _first(env, "EMAIL_TO").split(",") if r.strip()) or (sender,)
    return EmailConfig(
        smtp_host=_first(env, "SMTP_HOST") or "smtp.gmail.com",
        smtp_port=port,
        username=username,
        password=password,
        sender=sender,
        recipients=recipients,
        use_tls=_first(env, "SMTP_USE_TLS").lower() not in ("0", "false", "no"),
        subject=_first(env, "EMAIL_SUBJECT") or DEFAULT_SUBJECT,
    )


def _money(value: float) -> str:
    return f"${value:.2f}"


def _signed_money(value: float) -> str:
    sign = "-" if value < 0 else "+"
    return f"{sign}${abs(value):.2f}"


def format_report(changes: list[ChangeEvent]) -> str:
    blocks: list[str] = []
    for c in changes:
        lines = [c.title]
        if c.kind == RESTOCK:
            lines.append("Old: out of stock")
        else:
            lines.append(f"Old: {_money(c.before)}")
        lines.append(f"New: {_money(c.after)}")
        lines.append(f"Change: {_signed_money(c.change)}")
        if c.link:
            lines.append(f"Link: {c.link}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n" if blocks else ""


def h(text: str | None) -> str:
    return html.escape(text or "", quote=True)


def format_report_html(changes: list[ChangeEvent]) -> str:
    items: list[str] = []
    for c in changes:
        title = f'<a href="{h(c.link)}">{h(c.title)}</a>' if c.link else h(c.title)
        old = "out of stock" if c.kind == RESTOCK else _money(c.before)
        tag = "Back in stock" if c.kind == RESTOCK else "Price change"
        items.append(
            "<li>"
            f"<b>{title}</b> <i>{tag}</i><br>"
            f"Old: {h(old)} &rarr; New: {h(_money(c.after))} "
            f"(<b>{h(_signed_money(c.change))}</b>)"
            "</li>"
        )
    return "<html><body><ul>" + "".join(items) + "</ul></body></html>"


def build_message(cfg: EmailConfig, changes: list[ChangeEvent]) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = cfg.subject
    msg["From"] = cfg.sender
    msg["To"] = ", ".join(cfg.recipients)
    msg.set_content(format_report(changes))
    msg.add_alternative(format_report_html(changes), subtype="html")
    return msg


def send_report(cfg: EmailConfig, changes: list[ChangeEvent], *, timeout_seconds: float = 20.0) -> None:
    """Send one report email. Single attempt; transport errors raise NotificationError."""
    if not changes:
        return
    msg = build_message(cfg, changes)
    context = ssl.create_default_context()
    try:
        if cfg.smtp_port == 465:
            with smtplib.SMTP_SSL(cfg.smtp_host, cfg.smtp_port, context=context, timeout=timeout_seconds) as s:
                s.login(cfg.username, cfg.password)
                s.send_message(msg)
        else:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=timeout_seconds) as s:
                s.ehlo()
                if cfg.use_tls:
                    s.starttls(context=context)
                    s.ehlo()
                s.login(cfg.username, cfg.password)
                s.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise NotificationError(f"{type(e).__name__}: {e}") from e
