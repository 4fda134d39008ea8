"""
Best-effort report fan-out to a webhook, e-mail and WhatsApp.

Each channel runs on its own; a failure is logged and reported in the result
without stopping the other channels.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Callable, Optional

import requests
from pydantic import ValidationError

from checkin_backend.config import Settings
from checkin_shared.messages import build_checkin_summary, whatsapp_digits
from checkin_shared.types import Checkin

logger = logging.getLogger(__name__)

GRAPH_API_BASE = "https://graph.facebook.com"


def report_text(payload: dict, title: str) -> str:
    """Summary text for a payload that usually carries a check-in."""
    try:
        return build_checkin_summary(Checkin.from_wire(payload))
    except (ValidationError, TypeError):
        name = payload.get("nome") or payload.get("nomeCompleto") or "N/A"
        week = payload.get("semanaTexto") or "N/A"
        return f"{title}\nAluna: {name}\nSemana: {week}"


def email_recipient(payload: dict, settings: Settings) -> Optional[str]:
    return payload.get("adminEmail") or settings.report_email_to


def whatsapp_recipient(payload: dict, settings: Settings) -> str:
    return whatsapp_digits(payload.get("adminWhatsapp") or settings.whatsapp_to)


def configured_channels(payload: dict, settings: Settings) -> list[str]:
    channels = []
    if settings.report_webhook_url:
        channels.append("webhook")
    if settings.smtp_host and email_recipient(payload, settings):
        channels.append("email")
    if (
        settings.whatsapp_token
        and settings.whatsapp_phone_number_id
        and whatsapp_recipient(payload, settings)
    ):
        channels.append("whatsapp")
    return channels


def send_webhook(payload: dict, settings: Settings, session: requests.Session) -> dict:
    response = session.post(
        settings.report_webhook_url,
        json={"type": "weekly_report", **payload},
        timeout=settings.notification_timeout,
    )
    return {"ok": response.ok, "status": response.status_code}


def send_email(
    payload: dict,
    settings: Settings,
    smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
) -> dict:
    recipient = email_recipient(payload, settings)
    message = EmailMessage()
    message["Subject"] = settings.report_title
    message["From"] = settings.smtp_sender or settings.smtp_username or recipient
    message["To"] = recipient
    message.set_content(report_text(payload, settings.report_title))

    with smtp_factory(
        settings.smtp_host, settings.smtp_port, timeout=settings.notification_timeout
    ) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password or "")
        smtp.send_message(message)
    return {"ok": True, "to": recipient}


def send_whatsapp(payload: dict, settings: Settings, session: requests.Session) -> dict:
    recipient = whatsapp_recipient(payload, settings)
    url = (
        f"{GRAPH_API_BASE}/{settings.whatsapp_api_version}/"
        f"{settings.whatsapp_phone_number_id}/messages"
    )
    response = session.post(
        url,
        headers={"Authorization": f"Bearer {settings.whatsapp_token}"},
        json={
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "text",
            "text": {"body": report_text(payload, settings.report_title)},
        },
        timeout=settings.notification_timeout,
    )
    response.raise_for_status()
    return {"ok": True, "status": response.status_code, "to": recipient}


def send_report(
    payload: dict,
    settings: Settings,
    *,
    session: Optional[requests.Session] = None,
    smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
) -> dict[str, dict[str, Any]]:
    if session is None:
        with requests.Session() as own_session:
            return send_report(
                payload, settings, session=own_session, smtp_factory=smtp_factory
            )
    senders: dict[str, Callable[[], dict]] = {
        "webhook": lambda: send_webhook(payload, settings, session),
        "email": lambda: send_email(payload, settings, smtp_factory),
        "whatsapp": lambda: send_whatsapp(payload, settings, session),
    }
    results: dict[str, dict[str, Any]] = {}
    for channel in configured_channels(payload, settings):
        try:
            results[channel] = senders[channel]()
        except Exception as exc:
            logger.exception("Report channel %s failed", channel)
            results[channel] = {"ok": False, "error": str(exc)}
    return results
