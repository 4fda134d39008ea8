"""
Weekly check-in questionnaire and trainer profile models.

Attribute names are snake_case; the JSON form uses the camelCase keys the
browser form has always sent, so existing ``checkins.json`` files and clients
stay readable.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SessionCount(str, Enum):
    NONE = "0"
    ONE_TO_TWO = "1-2"
    THREE_TO_FOUR = "3-4"
    FIVE_PLUS = "5+"


class PerformanceProgress(str, Enum):
    A_LOT = "Sim, bastante"
    A_LITTLE = "Sim, um pouco"
    NOT_YET = "Ainda não"


class CardioDuration(str, Enum):
    MIN_20 = "20"
    MIN_30 = "30"
    MIN_45_PLUS = "45+"


class CardioIntensity(str, Enum):
    LIGHT = "Leve"
    MODERATE = "Moderada"
    HIGH = "Alta"


class EnergyLevel(str, Enum):
    EXCELLENT = "Excelente"
    GOOD = "Boa"
    AVERAGE = "Média"
    LOW = "Baixa"


class SleepQuality(str, Enum):
    VERY_GOOD = "Muito bom"
    GOOD = "Bom"
    FAIR = "Regular"
    POOR = "Ruim"


class FoodAdherence(str, Enum):
    FULLY = "Sim, totalmente"
    PARTLY = "Sim, em parte"
    NOT_MUCH = "Não muito"


class Motivation(str, Enum):
    VERY_HIGH = "Muito alta"
    GOOD = "Boa"
    AVERAGE = "Média"
    NEEDS_PUSH = "Preciso de impulso"


_TEXT_FIELDS = (
    "week_label",
    "missed_workout",
    "pain_or_fatigue",
    "cardio_type",
    "next_week_adjustment",
    "comments",
    "whatsapp",
)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Checkin(BaseModel):
    """One client's weekly questionnaire submission."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: str = Field(..., alias="nomeCompleto", max_length=200)
    week_label: str = Field(default="", alias="semanaTexto", max_length=200)
    marked_days: list[date] = Field(default_factory=list, alias="diasMarcados")
    strength_sessions: SessionCount = Field(
        default=SessionCount.NONE, alias="treinosForca"
    )
    performance_progress: PerformanceProgress = Field(
        default=PerformanceProgress.NOT_YET, alias="evolucaoDesempenho"
    )
    missed_workout: str = Field(default="", alias="treinoNaoCompletado")
    pain_or_fatigue: str = Field(default="", alias="dorOuFadiga")
    cardio_sessions: SessionCount = Field(
        default=SessionCount.NONE, alias="cardioSessoes"
    )
    cardio_type: str = Field(default="", alias="tipoCardio")
    cardio_duration: CardioDuration = Field(
        default=CardioDuration.MIN_20, alias="duracaoCardio"
    )
    cardio_intensity: CardioIntensity = Field(
        default=CardioIntensity.LIGHT, alias="intensidadeCardio"
    )
    energy: EnergyLevel = Field(default=EnergyLevel.AVERAGE, alias="energiaGeral")
    sleep: SleepQuality = Field(default=SleepQuality.FAIR, alias="sonoRecuperacao")
    food_adherence: FoodAdherence = Field(
        default=FoodAdherence.PARTLY, alias="alimentacaoPlano"
    )
    motivation: Motivation = Field(default=Motivation.GOOD, alias="motivacaoHumor")
    next_week_adjustment: str = Field(default="", alias="ajusteProximaSemana")
    comments: str = Field(default="", alias="comentariosAdicionais")
    whatsapp: str = Field(default="", alias="whatsapp", max_length=40)
    profile_photo: Optional[str] = Field(default=None, alias="fotoPerfil")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("full_name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("full name is required")
        return value

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("marked_days", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("marked_days")
    @classmethod
    def _sorted_days(cls, value: list[date]) -> list[date]:
        return sorted(set(value))

    @field_validator("profile_photo", mode="before")
    @classmethod
    def _blank_photo(cls, value: Any) -> Any:
        return value or None

    @field_validator("created_at")
    @classmethod
    def _utc_created_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @classmethod
    def from_wire(cls, data: dict) -> "Checkin":
        return cls.model_validate(data)

    def to_wire(self, *, include_created_at: bool = True) -> dict:
        exclude = None if include_created_at else {"created_at"}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)

    def stamped(self, created_at: datetime) -> "Checkin":
        """Return a copy carrying the given creation timestamp."""
        return self.model_copy(update={"created_at": as_utc(created_at)})


PROFILE_FIELDS = ("photo", "email", "whatsapp")


class Profile(BaseModel):
    """Singleton public-facing trainer info."""

    photo: Optional[str] = None
    email: str = ""
    whatsapp: str = ""

    @classmethod
    def from_raw(cls, raw: Optional[dict]) -> "Profile":
        """Build a profile from loosely-typed stored JSON."""
        raw = raw or {}
        return cls(
            photo=raw.get("photo") or None,
            email=raw.get("email") or "",
            whatsapp=raw.get("whatsapp") or "",
        )

    def patched(self, patch: Optional[dict]) -> "Profile":
        """
        Apply a field patch. Keys present in ``patch`` replace the stored value,
        absent keys keep it. Unknown keys are ignored.
        """
        patch = patch or {}
        current = self.model_dump()
        for key in PROFILE_FIELDS:
            if key in patch:
                current[key] = patch[key]
        return Profile.from_raw(current)
