"""Wipe or seed a user's data for demos and manual testing.

    $ gymbro-seed wipe <user-id>
    $ gymbro-seed seed <user-id>

``seed`` wipes first, then writes about two weeks of random check-ins and one
active chapter. The same functions back the ``/dev/wipe`` and ``/dev/seed``
routes when ``DEV_TOOLS`` is on.
"""
from __future__ import annotations
import argparse, logging, random, sys
from datetime import date, timedelta
from typing import NamedTuple, Optional

from .config import config as default_config
from .gateway import GatewayError, SqlGateway, create_db_engine, init_db
from .check_ins import XP_PER_CHECK_IN
from .models import AlcoholIntake, Chapter, ChapterFocus, ChapterStatus, DailyCheckIn

logger = logging.getLogger(__name__)

SEED_DAYS = 14
CHECK_IN_CHANCE = 0.8
ALCOHOL_CHOICES = [AlcoholIntake.NONE, AlcoholIntake.NONE, AlcoholIntake.NONE,
                   AlcoholIntake.LOW, AlcoholIntake.MODERATE, AlcoholIntake.HIGH]
NOTE_CHOICES = [None, "Felt great today!", "Tired but pushed through", "Rest day",
                "Good workout session", "Stressed from work", None, None]


class SeedResult(NamedTuple):
    ok: bool
    message: str
    check_ins: int = 0
    xp: int = 0


def wipe(gateway, user_id: str) -> SeedResult:
    """Delete the user's chapters and check-ins and zero XP and streak."""
    try:
        gateway.wipe_user_data(user_id)
    except GatewayError as e:
        logger.error("Wipe failed for %s: %s", user_id, e)
        return SeedResult(False, str(e))
    logger.info("Wiped data for %s", user_id)
    return SeedResult(True, "Data wiped")


def random_check_ins(user_id: str, today: date, rng: random.Random) -> list[DailyCheckIn]:
    rows = []
    for back in range(SEED_DAYS - 1, -1, -1):
        if rng.random() > CHECK_IN_CHANCE:
            continue
        rows.append(DailyCheckIn(
            user_id=user_id,
            date=(today - timedelta(days=back)).isoformat(),
            weight=round(rng.randint(70, 90) + rng.random(), 1),
            energy=rng.randint(1, 5),
            bloating_level=rng.randint(1, 5),
            movement_done=rng.random() > 0.3,
            alcohol_intake=rng.choice(ALCOHOL_CHOICES),
            notes=rng.choice(NOTE_CHOICES),
        ))
    return rows


def seed(gateway, user_id: str, today: Optional[date] = None,
         rng: Optional[random.Random] = None) -> SeedResult:
    today = today or date.today()
    rng = rng or random.Random()
    wiped = wipe(gateway, user_id)
    if not wiped.ok:
        return wiped

    check_ins = random_check_ins(user_id, today, rng)
    chapter = Chapter(
        user_id=user_id, chapter_name="Test Chapter", duration=30,
        focus=rng.choice(list(ChapterFocus)), status=ChapterStatus.ACTIVE,
        start_date=(today - timedelta(days=7)).isoformat(),
    )
    xp = len(check_ins) * XP_PER_CHECK_IN
    try:
        gateway.insert_check_ins(check_ins)
        gateway.insert_chapters([chapter])
        gateway.update_profile_counters(user_id, xp, len(check_ins))
    except GatewayError as e:
        logger.error("Seed failed for %s: %s", user_id, e)
        return SeedResult(False, str(e))

    message = f"Created {len(check_ins)} check-ins, 1 chapter, {xp} XP"
    logger.info(message)
    return SeedResult(True, message, len(check_ins), xp)


def main(argv=None, cfg=None):
    logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
    ap = argparse.ArgumentParser(prog="gymbro-seed", description="Wipe or seed Gymbro test data for one user")
    ap.add_argument("command", choices=["wipe", "seed"])
    ap.add_argument("user_id", help="id of the user whose data is replaced")
    args = ap.parse_args(argv)

    cfg = cfg or default_config
    if cfg.mock_mode:
        logger.error("DATABASE_URL is not set; nothing to seed in mock mode")
        return 1
    engine = create_db_engine(cfg.DATABASE_URL)
    init_db(engine)
    gateway = SqlGateway(engine)

    result = wipe(gateway, args.user_id) if args.command == "wipe" else seed(gateway, args.user_id)
    print(result.message)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
