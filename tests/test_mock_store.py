from gymbro.gateway import GatewayError
from gymbro.mock_store import MockStore
from gymbro.models import Chapter, ChapterFocus, DailyCheckIn, Profile

import pytest


def _fill(store):
    store.upsert_profile(Profile(id="u", age=30, height=180, weight=80, xp=20, soft_streaks=2))
    store.insert_chapters([Chapter(user_id="u", chapter_name="A", duration=10, focus=ChapterFocus.STRENGTH)])
    store.insert_check_ins([DailyCheckIn(user_id="u", date="2024-01-01", weight=80, bloating_level=1, energy=1)])


def test_reset_drops_everything():
    store = MockStore()
    _fill(store)
    store.reset()
    assert store.get_profile("u") is None
    assert store.list_chapters("u") == []
    assert store.list_check_ins("u") == []


def test_wipe_keeps_profile_but_zeroes_counters():
    store = MockStore()
    _fill(store)
    store.wipe_user_data("u")
    p = store.get_profile("u")
    assert (p.age, p.xp, p.soft_streaks) == (30, 0, 0)
    assert not store.has_chapters("u")


def test_missing_rows():
    store = MockStore()
    assert store.delete_chapter("nope") is False
    with pytest.raises(GatewayError):
        store.update_chapter("nope", {"duration": 3})
    with pytest.raises(GatewayError):
        store.update_check_in("nope", {"energy": 3})
