import base64
import io
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from PIL import Image

from checkin_backend.app import create_app
from checkin_backend.config import Settings
from checkin_backend.db import InMemoryCheckinStore

ADMIN_KEY = "s3cret"

CHECKIN = {
    "nomeCompleto": "Ana Souza",
    "semanaTexto": "Semana 1",
    "diasMarcados": ["2024-05-01"],
    "treinosForca": "3-4",
    "evolucaoDesempenho": "Sim, um pouco",
    "cardioSessoes": "1-2",
    "duracaoCardio": "30",
    "intensidadeCardio": "Moderada",
    "energiaGeral": "Boa",
    "sonoRecuperacao": "Bom",
    "alimentacaoPlano": "Sim, totalmente",
    "motivacaoHumor": "Muito alta",
}


def make_settings(**overrides):
    values = {
        "admin_key": ADMIN_KEY,
        "admin_username": "professor",
        "database_url": None,
        "report_webhook_url": None,
        "smtp_host": None,
        "whatsapp_token": None,
        "whatsapp_phone_number_id": None,
    }
    values.update(overrides)
    return Settings(**values)


def png_data_url(width=40, height=20):
    out = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(out, format="PNG")
    return "data:image/png;base64," + base64.b64encode(out.getvalue()).decode("ascii")


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryCheckinStore()
        self.client = TestClient(create_app(make_settings(), store=self.store))

    def submit(self, **extra):
        return self.client.post("/api/checkin", json={**CHECKIN, **extra})

    def test_health_reports_storage(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "storage": "memory"})

    def test_submit_checkin(self):
        response = self.submit(createdAt="1999-01-01T00:00:00Z")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["ok"])
        self.assertIn("createdAt", payload)
        self.assertFalse(payload["createdAt"].startswith("1999"))
        self.assertEqual(len(self.store.checkins), 1)

    def test_submit_requires_name(self):
        response = self.client.post("/api/checkin", json={**CHECKIN, "nomeCompleto": "  "})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.store.checkins, [])

    def test_submit_rejects_unknown_option(self):
        response = self.submit(treinosForca="7")
        self.assertEqual(response.status_code, 422)

    def test_submit_store_failure(self):
        with patch.object(self.store, "insert_checkin", side_effect=OSError("disk full")):
            response = self.submit()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "save_failed"})

    def test_list_requires_admin_key(self):
        self.submit()
        self.assertEqual(self.client.get("/api/checkins").status_code, 401)
        response = self.client.get("/api/checkins", params={"adminKey": "wrong"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "unauthorized"})

    def test_list_filters_by_name(self):
        self.submit()
        self.submit(nomeCompleto="Beatriz Lima")
        response = self.client.get(
            "/api/checkins", params={"adminKey": ADMIN_KEY, "nome": "beatriz"}
        )
        self.assertEqual(response.status_code, 200)
        items = response.json()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["nomeCompleto"], "Beatriz Lima")
        self.assertIn("createdAt", items[0])

    def test_list_newest_first(self):
        self.submit(nomeCompleto="First")
        self.submit(nomeCompleto="Second")
        items = self.client.get("/api/checkins", params={"adminKey": ADMIN_KEY}).json()
        self.assertEqual([i["nomeCompleto"] for i in items], ["Second", "First"])

    def test_list_invalid_date(self):
        response = self.client.get(
            "/api/checkins", params={"adminKey": ADMIN_KEY, "from": "yesterday"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "invalid_date"})

    def test_list_store_failure_returns_empty(self):
        with patch.object(self.store, "list_checkins", side_effect=RuntimeError("down")):
            response = self.client.get("/api/checkins", params={"adminKey": ADMIN_KEY})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_admin_login(self):
        ok = self.client.post(
            "/api/admin/login", json={"username": "professor", "password": ADMIN_KEY}
        )
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.json(), {"ok": True})

        bad = self.client.post(
            "/api/admin/login", json={"username": "professor", "password": "nope"}
        )
        self.assertEqual(bad.status_code, 401)
        self.assertEqual(bad.json(), {"error": "invalid_credentials"})

        missing = self.client.post("/api/admin/login", json={"username": "professor"})
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json(), {"error": "missing_credentials"})

    def test_clear_with_query_or_body_key(self):
        self.submit()
        self.submit()
        response = self.client.post("/api/admin/clear", params={"adminKey": ADMIN_KEY})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True, "deleted": 2})

        self.submit()
        response = self.client.post("/api/admin/clear", json={"adminKey": ADMIN_KEY})
        self.assertEqual(response.json()["deleted"], 1)

    def test_clear_unauthorized(self):
        self.submit()
        response = self.client.post("/api/admin/clear")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(len(self.store.checkins), 1)

    def test_summary(self):
        self.submit()
        self.submit(nomeCompleto="Bia", treinosForca="5+")
        response = self.client.get("/api/admin/summary", params={"adminKey": ADMIN_KEY})
        self.assertEqual(response.status_code, 200)
        summary = response.json()
        self.assertEqual(summary["total"], 2)
        self.assertEqual(summary["name_counts"], [["Ana Souza", 1], ["Bia", 1]])
        self.assertEqual(
            self.client.get("/api/admin/summary").status_code, 401
        )

    def test_filtered_summary_keeps_every_name(self):
        self.submit()
        self.submit(nomeCompleto="Bia", treinosForca="5+")
        response = self.client.get(
            "/api/admin/summary", params={"adminKey": ADMIN_KEY, "nome": "bia"}
        )
        summary = response.json()
        self.assertEqual(summary["total"], 1)
        self.assertEqual(summary["strength_by_name"], [{"name": "Bia", "count": 5}])
        self.assertEqual(summary["name_counts"], [["Ana Souza", 1], ["Bia", 1]])

    def test_profile_public_get_and_patch(self):
        self.assertEqual(
            self.client.get("/api/profile").json(),
            {"photo": None, "email": "", "whatsapp": ""},
        )
        response = self.client.post("/api/profile", json={"email": "coach@example.com"})
        self.assertEqual(response.status_code, 200)
        response = self.client.post("/api/profile", json={"whatsapp": "5511999990000"})
        self.assertEqual(
            response.json(),
            {"photo": None, "email": "coach@example.com", "whatsapp": "5511999990000"},
        )

    def test_profile_photo_is_normalized(self):
        response = self.client.post("/api/profile", json={"photo": png_data_url()})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["photo"].startswith("data:image/jpeg;base64,"))

    def test_profile_rejects_bad_photo(self):
        response = self.client.post("/api/profile", json={"photo": "not-an-image"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "invalid_photo"})

    def test_profile_rejects_oversized_image(self):
        with patch.object(Image, "MAX_IMAGE_PIXELS", 100):
            response = self.client.post(
                "/api/profile", json={"photo": png_data_url(40, 20)}
            )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "invalid_photo"})
        self.assertIsNone(self.store.get_profile().photo)

    def test_admin_profile_requires_key(self):
        response = self.client.post("/api/admin/profile", json={"email": "x@example.com"})
        self.assertEqual(response.status_code, 401)
        response = self.client.post(
            "/api/admin/profile", json={"email": "x@example.com", "adminKey": ADMIN_KEY}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.store.get_profile().email, "x@example.com")

    def test_report_pdf(self):
        self.submit()
        response = self.client.post(
            "/api/report/pdf", json={"nome": "Ana Souza", "semanaTexto": "Semana 1"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "application/pdf")
        self.assertIn("relatorio-Ana-Souza.pdf", response.headers["content-disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_report_send_without_channels_is_simulated(self):
        response = self.client.post("/api/report/send", json={"nome": "Ana"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"ok": True, "note": "no channels configured; simulated"},
        )

    def test_report_send_uses_configured_channels(self):
        client = TestClient(
            create_app(
                make_settings(report_webhook_url="https://hooks.example.com/report"),
                store=self.store,
            )
        )
        with patch(
            "checkin_backend.routes.send_report",
            return_value={"webhook": {"ok": True, "status": 200}},
        ) as send:
            response = client.post("/api/report/send", json={"nome": "Ana"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["channels"]["webhook"]["status"], 200)
        send.assert_called_once()


class MissingAdminKeyTests(unittest.TestCase):
    def test_admin_routes_refused_without_configured_key(self):
        with self.assertLogs("checkin_backend.app", level="WARNING"):
            app = create_app(make_settings(admin_key=None), store=InMemoryCheckinStore())
        client = TestClient(app)
        response = client.get("/api/checkins", params={"adminKey": ""})
        self.assertEqual(response.status_code, 401)
        response = client.post(
            "/api/admin/login", json={"username": "professor", "password": "anything"}
        )
        self.assertEqual(response.status_code, 401)


if __name__ == "__main__":
    unittest.main()
