"""
Pydantic schemas for the check-in HTTP API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from checkin_shared.types import PROFILE_FIELDS


class CheckinAccepted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: Literal[True] = True
    created_at: datetime = Field(..., alias="createdAt")


class AdminLoginPayload(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class AdminKeyPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    admin_key: Optional[str] = Field(default=None, alias="adminKey")


class OkResponse(BaseModel):
    ok: Literal[True] = True


class ClearResponse(BaseModel):
    ok: Literal[True] = True
    deleted: int


class ProfilePatch(BaseModel):
    """Only the fields actually sent are applied."""

    photo: Optional[str] = None
    email: Optional[str] = Field(default=None, max_length=254)
    whatsapp: Optional[str] = Field(default=None, max_length=40)

    def to_patch(self) -> dict:
        return self.model_dump(include=set(PROFILE_FIELDS) & self.model_fields_set)


class AdminProfilePayload(ProfilePatch):
    model_config = ConfigDict(populate_by_name=True)

    admin_key: Optional[str] = Field(default=None, alias="adminKey")


class ReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, alias="nome")
    week_label: Optional[str] = Field(default=None, alias="semanaTexto")


class ReportSendResponse(BaseModel):
    ok: bool = True
    channels: Optional[dict[str, dict[str, Any]]] = None
    note: Optional[str] = None


class SummaryResponse(BaseModel):
    total: int
    strength_by_name: list[dict[str, Any]]
    strength_by_week: list[dict[str, Any]]
    sleep_distribution: list[dict[str, Any]]
    energy_motivation: list[dict[str, Any]]
    food_adherence: list[dict[str, Any]]
    name_counts: list[list[Any]]


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    storage: str
