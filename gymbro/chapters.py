import logging
from datetime import date, timedelta
from typing import Callable, List, Optional

from .gateway import GatewayError
from .models import Chapter, ChapterFocus, ChapterStatus, utcnow
from .schemas import ChapterForm

logger = logging.getLogger(__name__)

NOT_FOUND = "Chapter not found"
EDITABLE_FIELDS = ("chapter_name", "duration", "focus", "status")

# (name, duration, focus, starts active)
DEFAULT_CHAPTERS = [
    ("Brazil Trip Preparation", 60, ChapterFocus.DRAINAGE, True),
    ("Europe Trip Maintenance", 40, ChapterFocus.MAINTENANCE, False),
    ("End-of-Year Purpose", 30, ChapterFocus.STRENGTH, False),
]


def days_elapsed(chapter: Chapter, today: date) -> int:
    if not chapter.start_date:
        return 0
    return max(0, (today - date.fromisoformat(chapter.start_date)).days)


def chapter_progress(chapter: Chapter, today: date) -> float:
    """Completed fraction of the chapter, 0 if it never started, capped at 1."""
    if not chapter.start_date or chapter.duration <= 0:
        return 0.0
    return min(1.0, days_elapsed(chapter, today) / chapter.duration)


class ChapterService:
    def __init__(self, gateway, user_id: str, today: Callable[[], date] = date.today):
        self.gateway = gateway
        self.user_id = user_id
        self.today = today
        self.chapters: List[Chapter] = []
        self.error: Optional[str] = None

    @property
    def active(self) -> Optional[Chapter]:
        return next((c for c in self.chapters if c.status == ChapterStatus.ACTIVE), None)

    def fetch(self) -> List[Chapter]:
        self.error = None
        try:
            self.chapters = self.gateway.list_chapters(self.user_id)
        except GatewayError as e:
            self.error = str(e)
        return self.chapters

    def get(self, chapter_id: str) -> Optional[Chapter]:
        c = self.gateway.get_chapter(chapter_id)
        if c is None or c.user_id != self.user_id:
            return None
        return c

    def preload_defaults(self) -> Optional[str]:
        """Give a new user the starter chapters; no-op once any chapter exists."""
        try:
            if self.gateway.has_chapters(self.user_id):
                return None
            now = utcnow()
            today = self.today().isoformat()
            rows = []
            for i, (name, duration, focus, active) in enumerate(DEFAULT_CHAPTERS):
                rows.append(Chapter(
                    user_id=self.user_id, chapter_name=name, duration=duration, focus=focus,
                    status=ChapterStatus.ACTIVE if active else ChapterStatus.PAUSED,
                    start_date=today if active else None,
                    # keep the listed order when sorting by creation time
                    created_at=now + timedelta(microseconds=i),
                ))
            self.gateway.insert_chapters(rows)
        except GatewayError as e:
            return str(e)
        logger.info("Preloaded %d chapters for %s", len(DEFAULT_CHAPTERS), self.user_id)
        self.fetch()
        return None

    def add(self, form: ChapterForm) -> Optional[str]:
        try:
            self.gateway.insert_chapters([Chapter(
                user_id=self.user_id, **form.model_dump(),
                status=ChapterStatus.PAUSED, start_date=None,
            )])
        except GatewayError as e:
            return str(e)
        self.fetch()
        return None

    def update(self, chapter_id: str, patch: dict) -> Optional[str]:
        patch = {k: v for k, v in patch.items() if k in EDITABLE_FIELDS and v is not None}
        try:
            if "status" in patch:
                patch["status"] = ChapterStatus(patch["status"])
            if "focus" in patch:
                patch["focus"] = ChapterFocus(patch["focus"])
        except ValueError as e:
            return str(e)
        try:
            current = self.get(chapter_id)
            if current is None:
                return NOT_FOUND
            if patch.get("status") == ChapterStatus.ACTIVE:
                # siblings are paused before the activation write lands
                paused = self.gateway.pause_active_chapters(self.user_id, except_id=chapter_id)
                if paused:
                    logger.info("Paused %d chapter(s) for %s", paused, self.user_id)
                if not current.start_date:
                    patch["start_date"] = self.today().isoformat()
            if patch:
                self.gateway.update_chapter(chapter_id, patch)
        except GatewayError as e:
            return str(e)
        self.fetch()
        return None

    def set_status(self, chapter_id: str, status: ChapterStatus) -> Optional[str]:
        return self.update(chapter_id, {"status": status})

    def delete(self, chapter_id: str) -> Optional[str]:
        try:
            if self.get(chapter_id) is None:
                return NOT_FOUND
            self.gateway.delete_chapter(chapter_id)
        except GatewayError as e:
            return str(e)
        self.fetch()
        return None

    def progress(self, chapter: Chapter) -> float:
        return chapter_progress(chapter, self.today())

    def days_elapsed(self, chapter: Chapter) -> int:
        return days_elapsed(chapter, self.today())
