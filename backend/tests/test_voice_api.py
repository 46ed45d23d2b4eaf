"""Tests for the voice expense HTTP endpoints."""

import os
import unittest
from datetime import date
from unittest.mock import patch

from fastapi.testclient import TestClient

from voice_expense.core.config import get_settings
from voice_expense.main import app

# Mock provider only, so the AI stage never leaves the process.
_ENV = {"AI_EXPENSE_PROVIDER": "mock", "AI_ALLOWED_PROVIDERS": "mock", "ENABLE_VOICE_EXPENSE": "true"}


@patch.dict(os.environ, _ENV, clear=False)
class VoiceEndpointTests(unittest.TestCase):
    def setUp(self):
        get_settings.cache_clear()
        self.client = TestClient(app)

    def tearDown(self):
        get_settings.cache_clear()

    def test_process_rule_hit(self):
        resp = self.client.post("/api/v1/voice/process", json={"text": "200 ka dosa khaya"})

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["status"], "accepted")
        self.assertEqual(body["data"]["amount"], 200.0)
        self.assertEqual(body["data"]["category"], "food")
        self.assertEqual(body["data"]["extractionMethod"], "rule-based")
        self.assertEqual(body["data"]["originalText"], "200 ka dosa khaya")
        self.assertEqual(body["categoryInfo"]["id"], "food")
        self.assertEqual(body["categoryInfo"]["englishName"], "Food & Dining")
        self.assertEqual(body["date"], date.today().isoformat())
        self.assertEqual(body["trail"], ["START", "RULE_ATTEMPTED", "ACCEPTED"])

    def test_process_fallback_with_quality_hint(self):
        resp = self.client.post(
            "/api/v1/voice/process",
            json={"text": "45", "audioQualityHint": "poor", "attempt": 1},
        )

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["data"]["amount"], 45.0)
        self.assertEqual(body["data"]["category"], "other")
        self.assertEqual(body["data"]["extractionMethod"], "fallback-extraction")
        self.assertEqual(body["confidence"], 0.6)
        self.assertEqual(body["attempt"], 1)

    def test_process_no_amount_returns_400(self):
        resp = self.client.post("/api/v1/voice/process", json={"text": "had a great meal today"})

        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["status"], "rejected")
        self.assertEqual(body["errorCode"], "no_amount_found")
        self.assertIsNone(body["data"])
        self.assertIsNone(body["categoryInfo"])
        self.assertEqual(len(body["stageErrors"]), 3)

    def test_process_out_of_bounds_returns_400(self):
        resp = self.client.post("/api/v1/voice/process", json={"text": "150000 rupees"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errorCode"], "amount_out_of_bounds")

    def test_process_empty_text_returns_422(self):
        resp = self.client.post("/api/v1/voice/process", json={"text": ""})
        self.assertEqual(resp.status_code, 422)

    def test_process_bad_quality_hint_returns_422(self):
        resp = self.client.post("/api/v1/voice/process", json={"text": "45", "audioQualityHint": "awful"})
        self.assertEqual(resp.status_code, 422)

    def test_capabilities(self):
        resp = self.client.get("/api/v1/voice/capabilities")

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["locale"], "hi-IN")
        self.assertIn("Hinglish", body["languages"])
        self.assertEqual(body["maxAmount"], 100000.0)
        ids = [c["id"] for c in body["categories"]]
        self.assertEqual(
            ids,
            ["food", "transport", "entertainment", "shopping", "healthcare", "utilities", "other"],
        )
        self.assertTrue(body["supportedFormats"])

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.json(), {"status": "ok"})


class VoiceFeatureFlagTests(unittest.TestCase):
    def setUp(self):
        get_settings.cache_clear()

    def tearDown(self):
        get_settings.cache_clear()

    @patch.dict(os.environ, {"ENABLE_VOICE_EXPENSE": "false"}, clear=False)
    def test_disabled_returns_404(self):
        client = TestClient(app)

        self.assertEqual(client.post("/api/v1/voice/process", json={"text": "₹50"}).status_code, 404)
        self.assertEqual(client.get("/api/v1/voice/capabilities").status_code, 404)
