from __future__ import annotations

import smtplib
import unittest
from unittest import mock

from wishlist_price_watch.emailer import (
    EmailConfig,
    build_message,
    format_report,
    format_report_html,
    load_email_config,
    send_report,
)
from wishlist_price_watch.errors import ConfigError, NotificationError
from wishlist_price_watch.models import DELTA, RESTOCK, ChangeEvent


def _cfg(port: int = 465) -> EmailConfig:
    return EmailConfig(
        smtp_host="smtp.example.test",
        smtp_port=port,
        username="me@example.test",
        password="app-pass",
        sender="me@example.test",
        recipients=("me@example.test",),
    )


CHANGES = [
    ChangeEvent(title="Kettle", link="https://shop.test/dp/1", before=100.0, after=90.0, kind=DELTA),
    ChangeEvent(title="Lamp <LED>", link=None, before=0.0, after=20.0, kind=RESTOCK),
]


class TestFormatReport(unittest.TestCase):
    def test_text_report_blocks(self) -> None:
        self.assertEqual(
            format_report(CHANGES),
            "Kettle\n"
            "Old: $100.00\n"
            "New: $90.00\n"
            "Change: -$10.00\n"
            "Link: https://shop.test/dp/1\n"
            "\n"
            "Lamp <LED>\n"
            "Old: out of stock\n"
            "New: $20.00\n"
            "Change: +$20.00\n",
        )

    def test_report_is_deterministic(self) -> None:
        self.assertEqual(format_report(CHANGES), format_report(list(CHANGES)))

    def test_html_report_escapes_titles(self) -> None:
        html = format_report_html(CHANGES)
        self.assertIn("Lamp &lt;LED&gt;", html)
        self.assertIn('href="https://shop.test/dp/1"', html)
        self.assertIn("Back in stock", html)

    def test_message_headers(self) -> None:
        msg = build_message(_cfg(), CHANGES)
        self.assertEqual(msg["Subject"], "Wishlist price alert")
        self.assertEqual(msg["To"], "me@example.test")
        self.assertTrue(msg.is_multipart())


class TestLoadEmailConfig(unittest.TestCase):
    def test_disabled_without_credentials(self) -> None:
        self.assertIsNone(load_email_config({}))
        self.assertIsNone(load_email_config({"GMAIL_USER": "me@example.test"}))

    def test_gmail_shortcut_defaults(self) -> None:
        cfg = load_email_config({"GMAIL_USER": "me@example.test", "GMAIL_PASS": "pw"})
        assert cfg is not None
        self.assertEqual(cfg.smtp_host, "smtp.gmail.com")
        self.assertEqual(cfg.smtp_port, 465)
        self.assertEqual(cfg.sender, "me@example.test")
        self.assertEqual(cfg.recipients, ("me@example.test",))

    def test_explicit_smtp_settings(self) -> None:
        cfg = load_email_config(
            {
                "SMTP_USERNAME": "bot",
                "SMTP_PASSWORD": "pw",
                "SMTP_HOST": "mail.example.test",
                "SMTP_PORT": "587",
                "EMAIL_FROM": "bot@example.test",
                "EMAIL_TO": "a@example.test, b@example.test",
                "SMTP_USE_TLS": "false",
            }
        )
        assert cfg is not None
        self.assertEqual(cfg.smtp_port, 587)
        self.assertEqual(cfg.recipients, ("a@example.test", "b@example.test"))
        self.assertFalse(cfg.use_tls)

    def test_invalid_port_is_a_config_error(self) -> None:
        base = {"GMAIL_USER": "me@example.test", "GMAIL_PASS": "pw"}
        with self.assertRaises(ConfigError):
            load_email_config({**base, "SMTP_PORT": "smtp"})
        with self.assertRaises(ConfigError):
            load_email_config({**base, "SMTP_PORT": "70000"})


class TestSendReport(unittest.TestCase):
    def test_ssl_send(self) -> None:
        with mock.patch("wishlist_price_watch.emailer.smtplib.SMTP_SSL") as smtp_ssl:
            send_report(_cfg(465), CHANGES)
        server = smtp_ssl.return_value.__enter__.return_value
        server.login.assert_called_once_with("me@example.test", "app-pass")
        server.send_message.assert_called_once()

    def test_starttls_send(self) -> None:
        with mock.patch("wishlist_price_watch.emailer.smtplib.SMTP") as smtp:
            send_report(_cfg(587), CHANGES)
        server = smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.send_message.assert_called_once()

    def test_empty_changes_send_nothing(self) -> None:
        with mock.patch("wishlist_price_watch.emailer.smtplib.SMTP_SSL") as smtp_ssl:
            send_report(_cfg(), [])
        smtp_ssl.assert_not_called()

    def test_transport_error_is_raised(self) -> None:
        with mock.patch(
            "wishlist_price_watch.emailer.smtplib.SMTP_SSL",
            side_effect=smtplib.SMTPAuthenticationError(535, b"bad credentials"),
        ):
            with self.assertRaises(NotificationError):
                send_report(_cfg(), CHANGES)


if __name__ == "__main__":
    unittest.main()
