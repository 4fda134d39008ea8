"""
PDF weekly report generation.
"""

from __future__ import annotations

import io
from datetime import datetime
from typing import Iterable, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from checkin_shared.types import Checkin

MARGIN = 2 * cm
BODY_FONT = "Helvetica"
BODY_SIZE = 12
LINE_HEIGHT = 18


def select_report_checkin(
    checkins: Iterable[Checkin], name: Optional[str] = None
) -> Optional[Checkin]:
    """Latest check-in for ``name`` (exact match), or the latest overall."""
    for checkin in checkins:
        if not name or checkin.full_name == name:
            return checkin
    return None


def report_lines(checkin: Checkin) -> list[str]:
    lines = [
        f"Treinos de força: {checkin.strength_sessions.value}",
        f"Evolução: {checkin.performance_progress.value}",
        (
            f"Cardio: {checkin.cardio_sessions.value} sessões, "
            f"{checkin.cardio_duration.value} min, {checkin.cardio_intensity.value}"
        ),
        f"Energia: {checkin.energy.value}",
        f"Sono: {checkin.sleep.value}",
        f"Alimentação: {checkin.food_adherence.value}",
        f"Motivação: {checkin.motivation.value}",
    ]
    if checkin.cardio_type:
        lines.append(f"Tipo de cardio: {checkin.cardio_type}")
    for label, value in (
        ("Treino não completado", checkin.missed_workout),
        ("Dor ou fadiga", checkin.pain_or_fatigue),
        ("Ajuste para a próxima semana", checkin.next_week_adjustment),
        ("Comentários", checkin.comments),
    ):
        if value:
            lines.append(f"{label}: {value}")
    if checkin.marked_days:
        lines.append(
            "Dias marcados: " + ", ".join(day.isoformat() for day in checkin.marked_days)
        )
    return lines


class _PageWriter:
    """Top-down line writer that wraps long text and breaks pages."""

    def __init__(self, pdf: canvas.Canvas):
        self.pdf = pdf
        self.width, self.height = A4
        self.y = self.height - MARGIN

    def _ensure_room(self) -> None:
        if self.y < MARGIN:
            self.pdf.showPage()
            self.y = self.height - MARGIN

    def title(self, text: str) -> None:
        self.pdf.setFont("Helvetica-Bold", 18)
        self.pdf.drawCentredString(self.width / 2, self.y, text)
        self.y -= 2 * LINE_HEIGHT

    def line(self, text: str, *, font: str = BODY_FONT, size: int = BODY_SIZE) -> None:
        self.pdf.setFont(font, size)
        for chunk in simpleSplit(text, font, size, self.width - 2 * MARGIN) or [""]:
            self._ensure_room()
            self.pdf.drawString(MARGIN, self.y, chunk)
            self.y -= LINE_HEIGHT

    def gap(self) -> None:
        self.y -= LINE_HEIGHT / 2


def build_weekly_report(
    checkins: Iterable[Checkin],
    *,
    name: Optional[str] = None,
    week_label: Optional[str] = None,
    title: str = "Relatório Semanal",
    generated_at: Optional[datetime] = None,
) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"{title} - {name}" if name else title)

    writer = _PageWriter(pdf)
    writer.title(title)
    writer.line(f"Aluna: {name or 'N/A'}", size=14)
    writer.line(f"Semana: {week_label or 'N/A'}", size=14)
    writer.gap()

    latest = select_report_checkin(checkins, name)
    if latest is None:
        writer.line("Nenhum check-in encontrado.")
    else:
        if latest.created_at is not None:
            writer.line(
                f"Enviado em: {latest.created_at.strftime('%d/%m/%Y %H:%M')} UTC",
                size=10,
            )
        for text in report_lines(latest):
            writer.line(text)

    if generated_at is not None:
        writer.gap()
        writer.line(f"Gerado em {generated_at.strftime('%d/%m/%Y %H:%M')}", size=9)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
