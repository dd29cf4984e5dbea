import random
from datetime import date, timedelta

from gymbro import seed
from gymbro.config import Config
from gymbro.models import ChapterFocus, ChapterStatus, DailyCheckIn
from gymbro.profiles import ProfileService
from gymbro.schemas import ChapterForm, ProfileForm
from gymbro.chapters import ChapterService

from conftest import TODAY, USER


def _with_profile(gateway):
    ProfileService(gateway, USER).save(ProfileForm(age=30, height=180, weight=80))


def test_seed_replaces_user_data(gateway, clock):
    _with_profile(gateway)
    ChapterService(gateway, USER, today=clock).add(
        ChapterForm(chapter_name="Old", duration=10, focus=ChapterFocus.STRENGTH))

    res = seed.seed(gateway, USER, today=TODAY, rng=random.Random(7))

    assert res.ok
    rows = gateway.list_check_ins(USER)
    assert len(rows) == res.check_ins
    assert 0 < res.check_ins <= seed.SEED_DAYS
    assert all(TODAY - timedelta(days=13) <= date.fromisoformat(r.date) <= TODAY for r in rows)
    assert res.xp == res.check_ins * 10

    (chapter,) = gateway.list_chapters(USER)
    assert chapter.chapter_name == "Test Chapter"
    assert chapter.status == ChapterStatus.ACTIVE
    assert chapter.start_date == (TODAY - timedelta(days=7)).isoformat()

    p = gateway.get_profile(USER)
    assert (p.xp, p.soft_streaks) == (res.xp, res.check_ins)
    assert res.message == f"Created {res.check_ins} check-ins, 1 chapter, {res.xp} XP"


def test_seed_is_reproducible_with_same_rng():
    a = seed.random_check_ins(USER, TODAY, random.Random(3))
    b = seed.random_check_ins(USER, TODAY, random.Random(3))
    assert [(r.date, r.weight, r.energy) for r in a] == [(r.date, r.weight, r.energy) for r in b]
    assert all(1 <= r.energy <= 5 and 70 <= r.weight <= 91 for r in a)


def test_wipe_leaves_other_users_alone(gateway, clock):
    _with_profile(gateway)
    seed.seed(gateway, USER, today=TODAY, rng=random.Random(1))
    gateway.insert_check_ins([DailyCheckIn(user_id="user-2", date="2024-01-01", weight=70,
                                           bloating_level=1, energy=1)])

    assert seed.wipe(gateway, USER).ok

    assert gateway.list_check_ins(USER) == []
    assert gateway.list_chapters(USER) == []
    p = gateway.get_profile(USER)
    assert (p.xp, p.soft_streaks) == (0, 0)
    assert len(gateway.list_check_ins("user-2")) == 1


def test_cli_refuses_mock_mode():
    assert seed.main(["seed", USER], cfg=Config()) == 1


def test_cli_seeds_database(tmp_path, capsys):
    cfg = Config(DATABASE_URL=f"sqlite:///{tmp_path / 'gymbro.db'}", JWT_SECRET="s")
    assert seed.main(["seed", USER], cfg=cfg) == 0
    assert "check-ins, 1 chapter" in capsys.readouterr().out
    assert seed.main(["wipe", USER], cfg=cfg) == 0
    assert "Data wiped" in capsys.readouterr().out
