import logging
from datetime import date
from typing import Callable, List, NamedTuple, Optional

from .gateway import GatewayError
from .models import DailyCheckIn
from .profiles import ProfileService
from .schemas import CheckInForm

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 30
XP_PER_CHECK_IN = 10


class CheckInResult(NamedTuple):
    error: Optional[str] = None
    xp_gained: int = 0
    created: bool = False


def missed_days(check_ins: List[DailyCheckIn], today: date) -> int:
    """Whole days skipped since the newest check-in (expects newest first).

    Not having checked in yet today does not count as a missed day.
    """
    if not check_ins:
        return 0
    gap = (today - date.fromisoformat(check_ins[0].date)).days
    return max(0, gap - 1)


class CheckInService:
    def __init__(self, gateway, user_id: str, profiles: Optional[ProfileService] = None,
                 today: Callable[[], date] = date.today):
        self.gateway = gateway
        self.user_id = user_id
        self.profiles = profiles or ProfileService(gateway, user_id)
        self.today = today
        self.check_ins: List[DailyCheckIn] = []
        self.error: Optional[str] = None

    def fetch(self) -> List[DailyCheckIn]:
        self.error = None
        try:
            self.check_ins = self.gateway.list_check_ins(self.user_id, limit=HISTORY_LIMIT)
        except GatewayError as e:
            self.error = str(e)
        return self.check_ins

    def add(self, form: CheckInForm) -> CheckInResult:
        # only the first check-in of a day earns XP and extends the streak
        day = self.today().isoformat()
        fields = form.model_dump()
        try:
            existing = self.gateway.find_check_in(self.user_id, day)
            if existing:
                self.gateway.update_check_in(existing.id, fields)
            else:
                self.gateway.insert_check_ins([DailyCheckIn(user_id=self.user_id, date=day, **fields)])
        except GatewayError as e:
            logger.warning("Check-in failed for %s: %s", self.user_id, e)
            return CheckInResult(error=str(e))

        xp = 0
        if not existing:
            err = self.profiles.update_xp_and_streak(XP_PER_CHECK_IN, 1)
            if err:
                logger.warning("XP not credited for %s: %s", self.user_id, err)
            else:
                xp = XP_PER_CHECK_IN
        self.fetch()
        return CheckInResult(xp_gained=xp, created=existing is None)

    def today_check_in(self) -> Optional[DailyCheckIn]:
        day = self.today().isoformat()
        return next((c for c in self.check_ins if c.date == day), None)

    def has_today(self) -> bool:
        return self.today_check_in() is not None

    def recent(self, n: int = 7) -> List[DailyCheckIn]:
        return self.check_ins[:n]

    def last(self) -> Optional[DailyCheckIn]:
        return self.check_ins[0] if self.check_ins else None

    def missed_days(self) -> int:
        return missed_days(self.check_ins, self.today())
