import logging
from datetime import date
from typing import List, Optional

import httpx
import ollama

from .chapters import chapter_progress, days_elapsed
from .config import Config
from .models import Profile, Chapter, DailyCheckIn

logger = logging.getLogger(__name__)

MAX_TOKENS = 500
TEMPERATURE = 0.7
PROMPT_CHECK_INS = 5

NOT_CONFIGURED_MESSAGE = "Coach is not configured. Add OPENAI_API_KEY to your .env file."
EMPTY_REPLY = "No response generated."
APOLOGY_MESSAGE = "Sorry, I encountered an error. Please try again."

TRANSPORT_ERRORS = (httpx.HTTPError, ollama.ResponseError, ConnectionError, KeyError, ValueError)

PERSONA = """You are a fitness coach for Gymbro, a gamified personal performance app.
Your tone is direct, calm, intelligent, and non-preachy. You focus on adherence and consistency, not perfection.
Never count calories. Keep responses concise and actionable."""


def _enum_text(v) -> str:
    return getattr(v, "value", v)


def build_system_prompt(profile: Optional[Profile], active_chapter: Optional[Chapter],
                        recent_check_ins: List[DailyCheckIn], today: Optional[date] = None) -> str:
    today = today or date.today()
    context = PERSONA

    if profile:
        context += (f"\n\nUser Profile:\n- Age: {profile.age}\n- Height: {profile.height:g}cm"
                    f"\n- Weight: {profile.weight:g}kg\n- Long-term goal: {profile.long_term_goal}")
        if profile.injury_notes:
            context += f"\n- Injuries/limitations: {profile.injury_notes}"
        context += f"\n- XP: {profile.xp}, Streak: {profile.soft_streaks} days"

    if active_chapter:
        context += (f'\n\nActive Chapter: "{active_chapter.chapter_name}"'
                    f"\n- Focus: {_enum_text(active_chapter.focus)}"
                    f"\n- Duration: {active_chapter.duration} days")
        if active_chapter.start_date:
            pct = round(chapter_progress(active_chapter, today) * 100)
            day = days_elapsed(active_chapter, today)
            context += f"\n- Progress: {pct}% (day {day} of {active_chapter.duration})"

    shown = recent_check_ins[:PROMPT_CHECK_INS]
    if shown:
        context += f"\n\nRecent Check-ins (last {len(shown)} days):"
        for ci in shown:
            context += (f"\n- {ci.date}: {ci.weight:g}kg, energy {ci.energy}/5, "
                        f"bloating {ci.bloating_level}/5, alcohol: {_enum_text(ci.alcohol_intake)}, "
                        f"moved: {'yes' if ci.movement_done else 'no'}")
            if ci.notes:
                context += f", note: {ci.notes}"

    return context


class Coach:
    def __init__(self, config: Config, http: Optional[httpx.Client] = None,
                 ollama_client: Optional[ollama.Client] = None):
        self.config = config
        self.http = http
        self.ollama_client = ollama_client

    @property
    def configured(self) -> bool:
        return self.config.coach_configured

    def send(self, messages: List[dict], profile: Optional[Profile], active_chapter: Optional[Chapter],
             recent_check_ins: List[DailyCheckIn], today: Optional[date] = None) -> str:
        if not self.configured:
            return NOT_CONFIGURED_MESSAGE
        system = build_system_prompt(profile, active_chapter, recent_check_ins, today)
        payload = [{"role": "system", "content": system}]
        payload += [{"role": m["role"], "content": m["content"]} for m in messages]
        if self.config.COACH_PROVIDER == "ollama":
            text = self._ask_ollama(payload)
        else:
            text = self._ask_openai(payload)
        return text.strip() or EMPTY_REPLY

    def _ask_openai(self, payload: List[dict]) -> str:
        url = self.config.OPENAI_BASE_URL.rstrip("/") + "/chat/completions"
        body = {
            "model": self.config.OPENAI_MODEL,
            "messages": payload,
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }
        headers = {"Authorization": f"Bearer {self.config.OPENAI_API_KEY}"}
        if self.http is not None:
            r = self.http.post(url, json=body, headers=headers, timeout=60.0)
        else:
            r = httpx.post(url, json=body, headers=headers, timeout=60.0)
        r.raise_for_status()
        choices = r.json().get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    def _ask_ollama(self, payload: List[dict]) -> str:
        client = self.ollama_client or ollama.Client(host=self.config.OLLAMA_HOST or None)
        response = client.chat(
            model=self.config.OLLAMA_MODEL,
            messages=payload,
            options={"num_predict": MAX_TOKENS, "temperature": TEMPERATURE},
        )
        return response["message"]["content"] or ""
