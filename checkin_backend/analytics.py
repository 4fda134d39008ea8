"""
Trend aggregates behind the admin dashboard charts.

Every function takes check-ins newest first, as returned by the stores.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Optional

from checkin_shared.types import (
    Checkin,
    EnergyLevel,
    FoodAdherence,
    Motivation,
    SessionCount,
    SleepQuality,
)

STRENGTH_SCORES = {
    SessionCount.NONE: 0,
    SessionCount.ONE_TO_TWO: 2,
    SessionCount.THREE_TO_FOUR: 4,
    SessionCount.FIVE_PLUS: 5,
}

ENERGY_ORDER = list(EnergyLevel)
MOTIVATION_ORDER = list(Motivation)


def strength_score(checkin: Checkin) -> int:
    return STRENGTH_SCORES[checkin.strength_sessions]


def week_label(checkin: Checkin) -> str:
    if checkin.week_label.strip():
        return checkin.week_label
    if checkin.created_at is not None:
        return checkin.created_at.strftime("%d/%m/%Y")
    return ""


def strength_by_name(checkins: list[Checkin]) -> list[dict[str, Any]]:
    totals: dict[str, int] = {}
    for checkin in checkins:
        totals[checkin.full_name] = totals.get(checkin.full_name, 0) + strength_score(checkin)
    return [{"name": name, "count": count} for name, count in totals.items()]


def strength_by_week(checkins: list[Checkin]) -> list[dict[str, Any]]:
    return [
        {"week": week_label(checkin), "count": strength_score(checkin)}
        for checkin in reversed(checkins)
    ]


def sleep_distribution(checkins: list[Checkin]) -> list[dict[str, Any]]:
    counts = Counter(checkin.sleep for checkin in checkins)
    return [{"name": option.value, "value": counts[option]} for option in SleepQuality]


def energy_motivation(checkins: list[Checkin]) -> list[dict[str, Any]]:
    # 0 is the best answer on both scales
    return [
        {
            "index": index,
            "energy": ENERGY_ORDER.index(checkin.energy),
            "motivation": MOTIVATION_ORDER.index(checkin.motivation),
            "name": checkin.full_name,
        }
        for index, checkin in enumerate(checkins, start=1)
    ]


def food_adherence(checkins: list[Checkin]) -> list[dict[str, Any]]:
    counts = Counter(checkin.food_adherence for checkin in checkins)
    total = len(checkins) or 1
    return [
        {
            "category": option.value,
            "count": counts[option],
            "percent": math.floor(counts[option] / total * 100 + 0.5),
        }
        for option in FoodAdherence
    ]


def name_counts(checkins: list[Checkin]) -> list[list[Any]]:
    counts = Counter(checkin.full_name for checkin in checkins)
    return [[name, counts[name]] for name in sorted(counts)]


def build_summary(
    checkins: list[Checkin], all_checkins: Optional[list[Checkin]] = None
) -> dict[str, Any]:
    """
    Charts follow the filtered ``checkins``; ``name_counts`` is taken from
    ``all_checkins`` so the client picker keeps every name while one is
    selected.
    """
    if all_checkins is None:
        all_checkins = checkins
    return {
        "total": len(checkins),
        "strength_by_name": strength_by_name(checkins),
        "strength_by_week": strength_by_week(checkins),
        "sleep_distribution": sleep_distribution(checkins),
        "energy_motivation": energy_motivation(checkins),
        "food_adherence": food_adherence(checkins),
        "name_counts": name_counts(all_checkins),
    }
