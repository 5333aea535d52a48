"""
Schedule generator client.

Sends the current week and the user's request to a Gemini-style
`generateContent` HTTP endpoint and returns the proposed week as plain JSON
data. The answer is untrusted: it is parsed here, but validated and checked
for conflicts by the engine.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Mapping
from typing import Any, Optional

import requests

from myweek.errors import GeneratorParseError, GeneratorRefusedError, GeneratorUnavailableError
from myweek.model import WeekSchedule


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

SCHEDULER_PROMPT = """
You are a scheduling agent for a student's weekly schedule.

Return ONLY valid JSON (no text, no markdown) of the form:
{"days": {"Monday": [{"task": "Study", "start": "18:00", "end": "20:00", "priority": "high"}], ...}}

Rules:
- Every task MUST include a priority: high, medium, or low
- Studying, exams, deadlines and academic work are typically high priority
- Practice, gym and skill-building are typically medium priority
- Leisure and rest are typically low priority
- Return the FULL updated schedule for all seven days
- Blocks marked "isClass": true are classes. They are IMMUTABLE: keep them exactly
  as they are (same task, start and end, "isClass": true)
- Never schedule anything over a class
- If the user asks to move, reschedule or delete a class, return {"error": "<reason>"}
  instead of a schedule
- No two blocks on the same day may overlap
- When inserting a task into an occupied slot, shorten or move the surrounding tasks
"""

CHRONOTYPE_RULES = {
    "lion": "User is a LION chronotype. Peak focus: early morning (5:00-11:00). "
    "Schedule high-priority tasks early. Avoid late-night work.",
    "bear": "User is a BEAR chronotype. Peak focus: 9:00-17:00. Follow a standard daytime schedule.",
    "wolf": "User is a WOLF chronotype. Peak focus: 15:00-23:00. Avoid early-morning high-priority tasks.",
    "dolphin": "User is a DOLPHIN chronotype. Focus comes in short bursts. "
    "Prefer shorter tasks with breaks. Avoid very late nights.",
}


def chronotype_rules(chronotype: Optional[str]) -> str:
    if not chronotype:
        return "User has no chronotype data. Use a balanced, neutral schedule."
    return CHRONOTYPE_RULES.get(chronotype.strip().lower(), "")


def build_prompt(
    current: WeekSchedule,
    request: str,
    history: Iterable[Mapping[str, str]] = (),
    chronotype: Optional[str] = None,
) -> str:
    chat = "\n".join(f"{str(m.get('role', '')).upper()}: {m.get('content', '')}" for m in history)
    return (
        f"{SCHEDULER_PROMPT}\n"
        f"CHRONOTYPE_CONTEXT:\n{chronotype_rules(chronotype)}\n\n"
        f"CONVERSATION:\n{chat}\n\n"
        f"CURRENT_SCHEDULE:\n{json.dumps(current.to_dict(), indent=2, ensure_ascii=False)}\n\n"
        f'USER_REQUEST:\n"{request}"\n'
    )


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def extract_json(text: str) -> dict[str, Any]:
    """
    Parse the model's text answer, tolerating ```json fences.

    Raises GeneratorParseError for non-JSON or non-object answers and
    GeneratorRefusedError when the model returned {"error": ...}.
    """
    cleaned = text.replace("```json", "").replace("```", "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise GeneratorParseError(f"Generator returned invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise GeneratorParseError("Generator returned JSON that is not an object")
    if "days" not in data and data.get("error"):
        raise GeneratorRefusedError(str(data["error"]))
    return data


def _response_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
        return "".join(str(p.get("text", "")) for p in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise GeneratorParseError("Generator response has no candidate text") from exc


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GeminiGenerator:
    """
    Minimal client for the generateContent REST endpoint.

    Timeouts are handled here (requests timeout), not by the engine.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.environ.get("GEMINI_API_KEY", "")
        self.model = model or os.environ.get("MYWEEK_MODEL", "").strip() or DEFAULT_MODEL
        self.base_url = (base_url or os.environ.get("MYWEEK_GENERATOR_URL", "").strip() or DEFAULT_BASE_URL).rstrip(
            "/"
        )
        self.timeout = timeout
        self.session = session or requests.Session()

    def generate(
        self,
        current: WeekSchedule,
        request: str,
        history: Iterable[Mapping[str, str]] = (),
        chronotype: Optional[str] = None,
    ) -> dict[str, Any]:
        if not self.api_key:
            raise GeneratorUnavailableError("GEMINI_API_KEY is not configured")

        prompt = build_prompt(current, request, history=history, chronotype=chronotype)
        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}

        logger.debug("Generator request: model=%s prompt_chars=%d", self.model, len(prompt))
        try:
            resp = self.session.post(url, params={"key": self.api_key}, json=body, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise GeneratorUnavailableError(f"Generator request failed: {exc}") from exc
        try:
            payload = resp.json()
        except ValueError as exc:
            raise GeneratorParseError("Generator response is not JSON") from exc

        text = _response_text(payload)
        logger.debug("Generator response: %d chars", len(text))
        return extract_json(text)
