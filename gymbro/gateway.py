import logging
from contextlib import contextmanager
from typing import Optional, List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine, select

from .models import Profile, Chapter, ChapterStatus, DailyCheckIn

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    pass


def create_db_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)


class SqlGateway:
    def __init__(self, engine):
        self.engine = engine

    @contextmanager
    def session(self):
        s = Session(self.engine, expire_on_commit=False)
        try:
            yield s
        except SQLAlchemyError as e:
            s.rollback()
            logger.error("Database error: %s", e)
            raise GatewayError(str(e.__cause__ or e)) from e
        finally:
            s.close()

    # Profiles
    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self.session() as s:
            return s.get(Profile, user_id)

    def upsert_profile(self, profile: Profile) -> Profile:
        with self.session() as s:
            merged = s.merge(profile)
            s.commit()
            s.refresh(merged)
            return merged

    def update_profile_counters(self, user_id: str, xp: int, soft_streaks: int) -> Optional[Profile]:
        with self.session() as s:
            p = s.get(Profile, user_id)
            if not p:
                return None
            p.xp = xp; p.soft_streaks = soft_streaks
            s.add(p); s.commit(); s.refresh(p)
            return p

    # Chapters
    def list_chapters(self, user_id: str) -> List[Chapter]:
        with self.session() as s:
            return list(s.exec(select(Chapter).where(Chapter.user_id == user_id)
                               .order_by(Chapter.created_at.asc())).all())

    def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        with self.session() as s:
            return s.get(Chapter, chapter_id)

    def has_chapters(self, user_id: str) -> bool:
        with self.session() as s:
            return s.exec(select(Chapter.id).where(Chapter.user_id == user_id).limit(1)).first() is not None

    def insert_chapters(self, chapters: List[Chapter]) -> None:
        with self.session() as s:
            s.add_all(chapters); s.commit()

    def pause_active_chapters(self, user_id: str, except_id: Optional[str] = None) -> int:
        with self.session() as s:
            q = select(Chapter).where(Chapter.user_id == user_id, Chapter.status == ChapterStatus.ACTIVE)
            if except_id:
                q = q.where(Chapter.id != except_id)
            rows = s.exec(q).all()
            for c in rows:
                c.status = ChapterStatus.PAUSED
                s.add(c)
            s.commit()
            return len(rows)

    def update_chapter(self, chapter_id: str, patch: dict) -> Chapter:
        with self.session() as s:
            c = s.get(Chapter, chapter_id)
            if not c:
                raise GatewayError("Chapter not found")
            for k, v in patch.items():
                setattr(c, k, v)
            s.add(c); s.commit(); s.refresh(c)
            return c

    def delete_chapter(self, chapter_id: str) -> bool:
        with self.session() as s:
            c = s.get(Chapter, chapter_id)
            if not c:
                return False
            s.delete(c); s.commit()
            return True

    # Check-ins
    def list_check_ins(self, user_id: str, limit: int = 30) -> List[DailyCheckIn]:
        with self.session() as s:
            return list(s.exec(select(DailyCheckIn).where(DailyCheckIn.user_id == user_id)
                               .order_by(DailyCheckIn.date.desc()).limit(limit)).all())

    def find_check_in(self, user_id: str, day: str) -> Optional[DailyCheckIn]:
        with self.session() as s:
            return s.exec(select(DailyCheckIn).where(DailyCheckIn.user_id == user_id,
                                                     DailyCheckIn.date == day)).first()

    def insert_check_ins(self, check_ins: List[DailyCheckIn]) -> None:
        with self.session() as s:
            s.add_all(check_ins); s.commit()

    def update_check_in(self, check_in_id: str, patch: dict) -> DailyCheckIn:
        with self.session() as s:
            ci = s.get(DailyCheckIn, check_in_id)
            if not ci:
                raise GatewayError("Check-in not found")
            for k, v in patch.items():
                setattr(ci, k, v)
            s.add(ci); s.commit(); s.refresh(ci)
            return ci

    # Maintenance
    def wipe_user_data(self, user_id: str) -> None:
        with self.session() as s:
            for ci in s.exec(select(DailyCheckIn).where(DailyCheckIn.user_id == user_id)).all():
                s.delete(ci)
            for c in s.exec(select(Chapter).where(Chapter.user_id == user_id)).all():
                s.delete(c)
            p = s.get(Profile, user_id)
            if p:
                p.xp = 0; p.soft_streaks = 0
                s.add(p)
            s.commit()
