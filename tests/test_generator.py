"""
Tests for the generator client. No network: a fake session replaces requests.
"""

import unittest

import requests

from myweek.errors import GeneratorParseError, GeneratorRefusedError, GeneratorUnavailableError
from myweek.generator import GeminiGenerator, build_prompt, chronotype_rules, extract_json
from myweek.model import TimeBlock, WeekSchedule


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False) -> None:
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.bad_json:
            raise ValueError("not json")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, params=None, json=None, timeout=None):
        self.calls.append({"url": url, "params": params, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def gemini_payload(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestExtractJson(unittest.TestCase):
    def test_plain_and_fenced(self) -> None:
        self.assertEqual(extract_json('{"days": {}}'), {"days": {}})
        self.assertEqual(extract_json('```json\n{"days": {"Monday": []}}\n```'), {"days": {"Monday": []}})

    def test_not_json(self) -> None:
        with self.assertRaises(GeneratorParseError):
            extract_json("Sure! Here is your schedule.")

    def test_not_an_object(self) -> None:
        with self.assertRaises(GeneratorParseError):
            extract_json("[1, 2]")

    def test_error_object_is_a_refusal(self) -> None:
        with self.assertRaises(GeneratorRefusedError):
            extract_json('{"error": "Classes cannot be moved"}')


class TestPrompt(unittest.TestCase):
    def test_prompt_contains_schedule_history_and_request(self) -> None:
        week = WeekSchedule(days={"Monday": [TimeBlock("Physics", "09:00", "10:00", "high", is_class=True)]})
        prompt = build_prompt(week, "add gym", history=[{"role": "user", "content": "hi"}], chronotype="Wolf")
        self.assertIn('"isClass": true', prompt)
        self.assertIn("USER: hi", prompt)
        self.assertIn('"add gym"', prompt)
        self.assertIn("WOLF", prompt)

    def test_unknown_chronotype(self) -> None:
        self.assertIn("no chronotype", chronotype_rules(None))
        self.assertEqual(chronotype_rules("cat"), "")


class TestGeminiGenerator(unittest.TestCase):
    def test_generate_returns_parsed_candidate(self) -> None:
        session = FakeSession(FakeResponse(gemini_payload('```json\n{"days": {"Monday": []}}\n```')))
        gen = GeminiGenerator(api_key="k", model="m", base_url="https://example.test/v1/", session=session)
        out = gen.generate(WeekSchedule.empty(), "clear monday")

        self.assertEqual(out, {"days": {"Monday": []}})
        call = session.calls[0]
        self.assertEqual(call["url"], "https://example.test/v1/models/m:generateContent")
        self.assertEqual(call["params"], {"key": "k"})
        self.assertIn("clear monday", call["json"]["contents"][0]["parts"][0]["text"])

    def test_missing_api_key(self) -> None:
        gen = GeminiGenerator(api_key="", session=FakeSession())
        with self.assertRaises(GeneratorUnavailableError):
            gen.generate(WeekSchedule.empty(), "x")

    def test_network_error(self) -> None:
        gen = GeminiGenerator(api_key="k", session=FakeSession(error=requests.ConnectionError("boom")))
        with self.assertRaises(GeneratorUnavailableError):
            gen.generate(WeekSchedule.empty(), "x")

    def test_http_error(self) -> None:
        gen = GeminiGenerator(api_key="k", session=FakeSession(FakeResponse(status_code=503)))
        with self.assertRaises(GeneratorUnavailableError):
            gen.generate(WeekSchedule.empty(), "x")

    def test_unexpected_payload(self) -> None:
        gen = GeminiGenerator(api_key="k", session=FakeSession(FakeResponse({"candidates": []})))
        with self.assertRaises(GeneratorParseError):
            gen.generate(WeekSchedule.empty(), "x")

    def test_body_not_json(self) -> None:
        gen = GeminiGenerator(api_key="k", session=FakeSession(FakeResponse(bad_json=True)))
        with self.assertRaises(GeneratorParseError):
            gen.generate(WeekSchedule.empty(), "x")


if __name__ == "__main__":
    unittest.main()
