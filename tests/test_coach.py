import json
from datetime import date

import httpx
import pytest

from gymbro.coach import (Coach, EMPTY_REPLY, MAX_TOKENS, NOT_CONFIGURED_MESSAGE, TEMPERATURE,
                          build_system_prompt)
from gymbro.config import Config
from gymbro.models import AlcoholIntake, Chapter, ChapterFocus, ChapterStatus, DailyCheckIn, Profile

TODAY = date(2024, 5, 20)


@pytest.fixture
def profile():
    return Profile(id="u", age=30, height=180, weight=80.5, long_term_goal="lean",
                   injury_notes="bad shoulder", xp=50, soft_streaks=5)


@pytest.fixture
def chapter():
    return Chapter(user_id="u", chapter_name="Brazil Trip Preparation", duration=60,
                   focus=ChapterFocus.DRAINAGE, status=ChapterStatus.ACTIVE, start_date="2024-05-05")


def _check_in(day, **kw):
    data = dict(user_id="u", date=day, weight=81.0, bloating_level=2, energy=4,
                alcohol_intake=AlcoholIntake.NONE, movement_done=True)
    data.update(kw)
    return DailyCheckIn(**data)


def test_prompt_includes_user_context(profile, chapter):
    check_ins = [_check_in("2024-05-19", notes="slept badly", alcohol_intake=AlcoholIntake.LOW),
                 _check_in("2024-05-18", movement_done=False)]
    prompt = build_system_prompt(profile, chapter, check_ins, today=TODAY)

    assert "Never count calories" in prompt
    assert "- Weight: 80.5kg" in prompt
    assert "- Injuries/limitations: bad shoulder" in prompt
    assert "XP: 50, Streak: 5 days" in prompt
    assert 'Active Chapter: "Brazil Trip Preparation"' in prompt
    assert "- Focus: drainage" in prompt
    assert "- Progress: 25% (day 15 of 60)" in prompt
    assert "Recent Check-ins (last 2 days):" in prompt
    assert "2024-05-19: 81kg, energy 4/5, bloating 2/5, alcohol: low, moved: yes, note: slept badly" in prompt
    assert "moved: no" in prompt


def test_prompt_without_data_is_just_persona():
    prompt = build_system_prompt(None, None, [], today=TODAY)
    assert "User Profile" not in prompt
    assert "Active Chapter" not in prompt
    assert "Recent Check-ins" not in prompt


def test_prompt_limits_check_ins():
    check_ins = [_check_in(f"2024-05-{d:02d}") for d in range(19, 9, -1)]
    prompt = build_system_prompt(None, None, check_ins, today=TODAY)
    assert "(last 5 days)" in prompt
    assert "2024-05-15" in prompt
    assert "2024-05-14" not in prompt


def test_not_configured_reply():
    coach = Coach(Config())
    assert not coach.configured
    assert coach.send([{"role": "user", "content": "hi"}], None, None, []) == NOT_CONFIGURED_MESSAGE


def _openai_coach(handler):
    cfg = Config(OPENAI_API_KEY="sk-test", OPENAI_BASE_URL="https://llm.test/v1/")
    return Coach(cfg, http=httpx.Client(transport=httpx.MockTransport(handler)))


def test_openai_request(profile, chapter):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  Drink water.  "}}]})

    coach = _openai_coach(handler)
    reply = coach.send([{"role": "user", "content": "What now?"}], profile, chapter, [])

    assert reply == "Drink water."
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert body["max_tokens"] == MAX_TOKENS == 500
    assert body["temperature"] == TEMPERATURE == 0.7
    assert body["messages"][0]["role"] == "system"
    assert body["messages"][1] == {"role": "user", "content": "What now?"}


def test_openai_empty_reply():
    coach = _openai_coach(lambda request: httpx.Response(200, json={"choices": []}))
    assert coach.send([{"role": "user", "content": "hi"}], None, None, []) == EMPTY_REPLY


def test_openai_http_error_propagates():
    coach = _openai_coach(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(httpx.HTTPStatusError):
        coach.send([{"role": "user", "content": "hi"}], None, None, [])


def test_ollama_provider():
    class FakeOllama:
        def chat(self, model, messages, options):
            self.call = (model, messages, options)
            return {"message": {"content": "Walk 20 minutes."}}

    fake = FakeOllama()
    coach = Coach(Config(COACH_PROVIDER="ollama", OLLAMA_MODEL="llama3:latest"), ollama_client=fake)
    assert coach.configured
    assert coach.send([{"role": "user", "content": "hi"}], None, None, []) == "Walk 20 minutes."
    model, messages, options = fake.call
    assert model == "llama3:latest"
    assert options == {"num_predict": 500, "temperature": 0.7}
    assert messages[-1]["content"] == "hi"


def test_send_uses_given_day_for_progress(chapter):
    class FakeOllama:
        def chat(self, model, messages, options):
            self.system = messages[0]["content"]
            return {"message": {"content": "ok"}}

    fake = FakeOllama()
    Coach(Config(COACH_PROVIDER="ollama"), ollama_client=fake).send(
        [{"role": "user", "content": "hi"}], None, chapter, [], today=TODAY)
    assert "- Progress: 25% (day 15 of 60)" in fake.system
