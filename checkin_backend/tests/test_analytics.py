import unittest
from datetime import datetime, timezone

from checkin_backend import analytics
from checkin_shared.types import Checkin


def checkin(name, day, **extra):
    return Checkin(
        full_name=name,
        created_at=datetime(2024, 5, day, 9, tzinfo=timezone.utc),
        **extra,
    )


class AnalyticsTests(unittest.TestCase):
    def setUp(self):
        # newest first
        self.checkins = [
            checkin("Bia", 3, strength_sessions="5+", sleep="Ruim",
                    energy="Baixa", motivation="Preciso de impulso",
                    food_adherence="Não muito"),
            checkin("Ana", 2, strength_sessions="1-2", week_label="Semana 2",
                    food_adherence="Sim, totalmente"),
            checkin("Ana", 1, strength_sessions="3-4", sleep="Muito bom",
                    energy="Excelente", motivation="Muito alta",
                    food_adherence="Sim, totalmente"),
        ]

    def test_strength_by_name_sums_scores(self):
        self.assertEqual(
            analytics.strength_by_name(self.checkins),
            [{"name": "Bia", "count": 5}, {"name": "Ana", "count": 6}],
        )

    def test_strength_by_week_is_oldest_first(self):
        self.assertEqual(
            analytics.strength_by_week(self.checkins),
            [
                {"week": "01/05/2024", "count": 4},
                {"week": "Semana 2", "count": 2},
                {"week": "03/05/2024", "count": 5},
            ],
        )

    def test_sleep_distribution_keeps_every_option(self):
        self.assertEqual(
            analytics.sleep_distribution(self.checkins),
            [
                {"name": "Muito bom", "value": 1},
                {"name": "Bom", "value": 0},
                {"name": "Regular", "value": 1},
                {"name": "Ruim", "value": 1},
            ],
        )

    def test_energy_motivation_indexes(self):
        series = analytics.energy_motivation(self.checkins)
        self.assertEqual(series[0], {"index": 1, "energy": 3, "motivation": 3, "name": "Bia"})
        self.assertEqual(series[2], {"index": 3, "energy": 0, "motivation": 0, "name": "Ana"})

    def test_food_adherence_percentages(self):
        self.assertEqual(
            analytics.food_adherence(self.checkins),
            [
                {"category": "Sim, totalmente", "count": 2, "percent": 67},
                {"category": "Sim, em parte", "count": 0, "percent": 0},
                {"category": "Não muito", "count": 1, "percent": 33},
            ],
        )

    def test_empty_input(self):
        summary = analytics.build_summary([])
        self.assertEqual(summary["total"], 0)
        self.assertEqual(summary["strength_by_name"], [])
        self.assertTrue(all(item["percent"] == 0 for item in summary["food_adherence"]))

    def test_name_counts_sorted(self):
        self.assertEqual(analytics.name_counts(self.checkins), [["Ana", 2], ["Bia", 1]])

    def test_summary_names_come_from_unfiltered_list(self):
        only_bia = self.checkins[:1]
        summary = analytics.build_summary(only_bia, self.checkins)
        self.assertEqual(summary["total"], 1)
        self.assertEqual(summary["name_counts"], [["Ana", 2], ["Bia", 1]])
        self.assertEqual(analytics.build_summary(only_bia)["name_counts"], [["Bia", 1]])


if __name__ == "__main__":
    unittest.main()
