from gymbro.chapters import ChapterService
from gymbro.models import ChapterStatus
from gymbro.profiles import ProfileService
from gymbro.schemas import ProfileForm

from conftest import TODAY, USER


def _form(**kw):
    data = dict(age=30, height=180, weight=80, long_term_goal="lean")
    data.update(kw)
    return ProfileForm(**data)


def test_fetch_missing_profile(gateway):
    svc = ProfileService(gateway, USER)
    assert svc.fetch() is None
    assert not svc.has_profile
    assert svc.error is None


def test_new_user_onboarding(gateway, clock):
    profiles = ProfileService(gateway, USER)
    assert profiles.save(_form()) is None
    p = profiles.profile
    assert (p.age, p.height, p.weight, p.long_term_goal) == (30, 180, 80, "lean")
    assert (p.xp, p.soft_streaks) == (0, 0)
    assert p.injury_notes is None

    chapters = ChapterService(gateway, USER, today=clock)
    chapters.preload_defaults()
    assert len(chapters.chapters) == 3
    assert chapters.active.chapter_name == "Brazil Trip Preparation"
    assert chapters.active.status == ChapterStatus.ACTIVE
    assert chapters.active.start_date == TODAY.isoformat()


def test_save_keeps_counters(gateway):
    svc = ProfileService(gateway, USER)
    svc.save(_form())
    svc.update_xp_and_streak(40, 4)

    assert svc.save(_form(weight=78.5, injury_notes="left knee")) is None
    p = svc.fetch()
    assert (p.weight, p.injury_notes) == (78.5, "left knee")
    assert (p.xp, p.soft_streaks) == (40, 4)


def test_streak_never_negative(gateway):
    svc = ProfileService(gateway, USER)
    svc.save(_form())
    svc.update_xp_and_streak(10, 2)
    assert svc.update_xp_and_streak(0, -5) is None
    assert (svc.profile.xp, svc.profile.soft_streaks) == (10, 0)


def test_update_counters_without_profile(gateway):
    assert ProfileService(gateway, USER).update_xp_and_streak(10, 1) == "Profile not found"
