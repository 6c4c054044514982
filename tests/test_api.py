import unittest

from fastapi.testclient import TestClient

from stay_calendar.api import app, get_settings, get_source
from stay_calendar.config import Settings
from stay_calendar.models import UnitInfo

from support import FakeSource, record


class TestCalendarApi(unittest.TestCase):
    def setUp(self):
        self.source = FakeSource(
            records=[record("2025-06-10", "2025-06-13", guest_label="Ana", reference_id="b1")],
            unit=UnitInfo(id="u1", title="Loft", location="Makati", base_price=2500),
        )
        app.dependency_overrides[get_settings] = lambda: Settings(data_url="https://db.example.test/rest/v1")
        app.dependency_overrides[get_source] = lambda: self.source
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_month_calendar(self):
        response = self.client.get("/units/u1/calendar", params={"focus": "2025-06-11"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["unit"]["title"], "Loft")
        self.assertEqual(body["unit"]["price"], 2500)
        state = body["render_state"]
        self.assertEqual(state["mode"], "month")
        self.assertEqual(state["title"], "June 2025")
        marked = [cell["day"] for cell in state["month_cells"] if cell["segments"]]
        self.assertEqual(marked, ["2025-06-10", "2025-06-11", "2025-06-12"])
        self.assertEqual(self.source.calls, ["unit:u1", "reservations:u1", "blocked:u1"])

    def test_week_calendar(self):
        response = self.client.get(
            "/units/u1/calendar",
            params={"mode": "week", "focus": "2025-06-11", "scroll_left": 50},
        )
        self.assertEqual(response.status_code, 200)
        state = response.json()["render_state"]
        self.assertEqual(state["mode"], "week")
        self.assertEqual(len(state["week_columns"]), 7)
        self.assertEqual(state["week_columns"][3]["day"], "2025-06-11")
        slot = state["week_columns"][2]["slots"][14]
        self.assertEqual(slot["segments"][0]["start_hour"], 14)
        self.assertEqual(slot["segments"][0]["end_hour"], 24)

    def test_unknown_unit(self):
        self.source.unit = None
        response = self.client.get("/units/missing/calendar")
        self.assertEqual(response.status_code, 404)

    def test_invalid_mode(self):
        response = self.client.get("/units/u1/calendar", params={"mode": "year"})
        self.assertEqual(response.status_code, 422)

    def test_negative_scroll_rejected(self):
        response = self.client.get("/units/u1/calendar", params={"scroll_left": -1})
        self.assertEqual(response.status_code, 422)

    def test_data_source_not_configured(self):
        app.dependency_overrides.pop(get_source)
        app.dependency_overrides[get_settings] = lambda: Settings(data_url=None)
        response = self.client.get("/units/u1/calendar")
        self.assertEqual(response.status_code, 503)


if __name__ == "__main__":
    unittest.main()
