import logging
from typing import Optional, List, Dict

from .gateway import GatewayError
from .models import Profile, Chapter, ChapterStatus, DailyCheckIn

logger = logging.getLogger(__name__)

MOCK_USER_ID = "mock-user-id"
MOCK_USER_EMAIL = "demo@gymbro.app"


class MockStore:
    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self._profiles: Dict[str, Profile] = {}
        self._chapters: List[Chapter] = []
        self._check_ins: List[DailyCheckIn] = []

    # Profiles
    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self._profiles.get(user_id)

    def upsert_profile(self, profile: Profile) -> Profile:
        self._profiles[profile.id] = profile
        return profile

    def update_profile_counters(self, user_id: str, xp: int, soft_streaks: int) -> Optional[Profile]:
        p = self._profiles.get(user_id)
        if p:
            p.xp = xp
            p.soft_streaks = soft_streaks
        return p

    # Chapters
    def list_chapters(self, user_id: str) -> List[Chapter]:
        rows = [c for c in self._chapters if c.user_id == user_id]
        return sorted(rows, key=lambda c: c.created_at)

    def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        return next((c for c in self._chapters if c.id == chapter_id), None)

    def has_chapters(self, user_id: str) -> bool:
        return any(c.user_id == user_id for c in self._chapters)

    def insert_chapters(self, chapters: List[Chapter]) -> None:
        self._chapters.extend(chapters)

    def pause_active_chapters(self, user_id: str, except_id: Optional[str] = None) -> int:
        paused = 0
        for c in self._chapters:
            if c.user_id == user_id and c.status == ChapterStatus.ACTIVE and c.id != except_id:
                c.status = ChapterStatus.PAUSED
                paused += 1
        return paused

    def update_chapter(self, chapter_id: str, patch: dict) -> Chapter:
        c = self.get_chapter(chapter_id)
        if not c:
            raise GatewayError("Chapter not found")
        for k, v in patch.items():
            setattr(c, k, v)
        return c

    def delete_chapter(self, chapter_id: str) -> bool:
        before = len(self._chapters)
        self._chapters = [c for c in self._chapters if c.id != chapter_id]
        return len(self._chapters) < before

    # Check-ins
    def list_check_ins(self, user_id: str, limit: int = 30) -> List[DailyCheckIn]:
        rows = [ci for ci in self._check_ins if ci.user_id == user_id]
        return sorted(rows, key=lambda ci: ci.date, reverse=True)[:limit]

    def find_check_in(self, user_id: str, day: str) -> Optional[DailyCheckIn]:
        return next((ci for ci in self._check_ins if ci.user_id == user_id and ci.date == day), None)

    def insert_check_ins(self, check_ins: List[DailyCheckIn]) -> None:
        self._check_ins.extend(check_ins)

    def update_check_in(self, check_in_id: str, patch: dict) -> DailyCheckIn:
        ci = next((ci for ci in self._check_ins if ci.id == check_in_id), None)
        if not ci:
            raise GatewayError("Check-in not found")
        for k, v in patch.items():
            setattr(ci, k, v)
        return ci

    # Maintenance
    def wipe_user_data(self, user_id: str) -> None:
        self._chapters = [c for c in self._chapters if c.user_id != user_id]
        self._check_ins = [ci for ci in self._check_ins if ci.user_id != user_id]
        self.update_profile_counters(user_id, 0, 0)
        logger.info("Mock data wiped for %s", user_id)
