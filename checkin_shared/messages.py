"""
Plain-text check-in summaries for WhatsApp and e-mail.
"""

from __future__ import annotations

import re
from urllib.parse import quote

from checkin_shared.types import Checkin

WA_ME_BASE_URL = "https://wa.me"


def whatsapp_digits(number: str | None) -> str:
    return re.sub(r"\D", "", number or "")


def build_checkin_summary(checkin: Checkin) -> str:
    headline = f"Novo check-in: {checkin.full_name}"
    if checkin.week_label:
        headline += f" - {checkin.week_label}"
    lines = [
        headline,
        f"Treinos de força: {checkin.strength_sessions.value}",
        f"Evolução: {checkin.performance_progress.value}",
        f"Energia: {checkin.energy.value}",
        f"Sono: {checkin.sleep.value}",
        f"Alimentação: {checkin.food_adherence.value}",
        f"Motivação: {checkin.motivation.value}",
        (
            f"Cardio: {checkin.cardio_sessions.value} sessões "
            f"({checkin.cardio_type or '-'}, {checkin.cardio_duration.value} min, "
            f"{checkin.cardio_intensity.value})"
        ),
    ]
    optional = (
        ("Treino não completado", checkin.missed_workout),
        ("Dor/fadiga", checkin.pain_or_fatigue),
        ("Ajuste próxima semana", checkin.next_week_adjustment),
        ("Comentários", checkin.comments),
    )
    lines.extend(f"{label}: {value}" for label, value in optional if value)
    if checkin.marked_days:
        days = ", ".join(day.isoformat() for day in checkin.marked_days)
        lines.append(f"Dias marcados: {days}")
    return "\n".join(lines)


def click_to_chat_url(number: str, text: str) -> str:
    """wa.me link that opens a chat with ``text`` pre-filled."""
    return f"{WA_ME_BASE_URL}/{whatsapp_digits(number)}?text={quote(text, safe='')}"
