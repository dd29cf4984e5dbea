"""Tests for daily check-ins and the XP/streak they earn."""
from datetime import date, timedelta

import pytest

from gymbro.check_ins import CheckInService, XP_PER_CHECK_IN, missed_days
from gymbro.models import AlcoholIntake, DailyCheckIn
from gymbro.profiles import ProfileService
from gymbro.schemas import CheckInForm, ProfileForm

from conftest import USER


def _form(**kw):
    data = dict(weight=82.0, bloating_level=2, energy=4, alcohol_intake=AlcoholIntake.NONE, movement_done=True)
    data.update(kw)
    return CheckInForm(**data)


@pytest.fixture
def services(gateway, clock):
    clock.day = date(2024, 1, 1)
    profiles = ProfileService(gateway, USER)
    profiles.save(ProfileForm(age=30, height=180, weight=80, long_term_goal="lean"))
    return profiles, CheckInService(gateway, USER, profiles=profiles, today=clock)


def test_same_day_resubmission_updates_single_record(services, gateway):
    profiles, svc = services
    first = svc.add(_form(energy=4))
    second = svc.add(_form(energy=5))

    assert first.error is None and first.created
    assert second.error is None and not second.created
    rows = gateway.list_check_ins(USER)
    assert len(rows) == 1
    assert rows[0].date == "2024-01-01"
    assert rows[0].energy == 5
    assert rows[0].weight == 82.0


def test_xp_and_streak_only_for_first_check_in_of_day(services, clock):
    profiles, svc = services
    assert svc.add(_form()).xp_gained == XP_PER_CHECK_IN
    assert svc.add(_form(energy=1)).xp_gained == 0
    assert (profiles.fetch().xp, profiles.profile.soft_streaks) == (10, 1)

    clock.day = date(2024, 1, 2)
    svc.add(_form())
    assert (profiles.fetch().xp, profiles.profile.soft_streaks) == (20, 2)


def test_check_in_without_profile_still_stored(gateway, clock):
    svc = CheckInService(gateway, USER, today=clock)
    res = svc.add(_form())
    assert res.error is None
    assert res.xp_gained == 0
    assert svc.has_today()


def test_today_recent_and_last(services, clock):
    _, svc = services
    assert svc.today_check_in() is None
    assert svc.last() is None
    for d in range(1, 6):
        clock.day = date(2024, 1, d)
        svc.add(_form(weight=80 + d))

    assert svc.has_today()
    assert svc.today_check_in().date == "2024-01-05"
    assert [c.date for c in svc.recent(3)] == ["2024-01-05", "2024-01-04", "2024-01-03"]
    assert svc.last().weight == 85

    clock.day = date(2024, 1, 6)
    assert not svc.has_today()
    assert svc.last().date == "2024-01-05"


def test_history_is_capped(gateway, clock):
    svc = CheckInService(gateway, USER, today=clock)
    start = date(2024, 1, 1)
    gateway.insert_check_ins([
        DailyCheckIn(user_id=USER, date=(start + timedelta(days=i)).isoformat(), weight=80,
                     bloating_level=1, energy=1)
        for i in range(40)
    ])
    rows = svc.fetch()
    assert len(rows) == 30
    assert rows[0].date == (start + timedelta(days=39)).isoformat()


def test_moderate_alcohol_round_trips(services, gateway):
    _, svc = services
    svc.add(_form(alcohol_intake=AlcoholIntake.MODERATE, notes="work dinner"))
    row = gateway.find_check_in(USER, "2024-01-01")
    assert row.alcohol_intake == AlcoholIntake.MODERATE
    assert row.notes == "work dinner"


def _row(day):
    return DailyCheckIn(user_id=USER, date=day.isoformat(), weight=80, bloating_level=1, energy=1)


@pytest.mark.parametrize("days_ago,expected", [(0, 0), (1, 0), (2, 1), (5, 4)])
def test_missed_days(days_ago, expected):
    today = date(2024, 2, 1)
    assert missed_days([_row(today - timedelta(days=days_ago))], today) == expected


def test_missed_days_without_history():
    assert missed_days([], date(2024, 2, 1)) == 0
