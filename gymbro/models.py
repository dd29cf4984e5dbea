import enum
import uuid
from typing import Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


def new_id() -> str:
    return uuid.uuid4().hex

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChapterFocus(str, enum.Enum):
    DRAINAGE = "drainage"
    STRENGTH = "strength"
    MAINTENANCE = "maintenance"

class ChapterStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"

class AlcoholIntake(str, enum.Enum):
    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: Optional[str] = None  # None for magic-link / OAuth accounts
    created_at: datetime = Field(default_factory=utcnow)

class Profile(SQLModel, table=True):
    __tablename__ = "profiles"
    id: str = Field(primary_key=True)  # same as the owning user id
    age: int
    height: float  # cm
    weight: float  # kg
    injury_notes: Optional[str] = None
    long_term_goal: str = ""
    xp: int = 0
    soft_streaks: int = 0
    created_at: datetime = Field(default_factory=utcnow)

class Chapter(SQLModel, table=True):
    __tablename__ = "chapters"
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    chapter_name: str
    duration: int  # days
    focus: ChapterFocus
    status: ChapterStatus = ChapterStatus.PAUSED
    start_date: Optional[str] = None  # YYYY-MM-DD local day, set once on first activation
    created_at: datetime = Field(default_factory=utcnow)

class DailyCheckIn(SQLModel, table=True):
    __tablename__ = "daily_check_ins"
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True)
    date: str = Field(index=True)  # YYYY-MM-DD local day, one per user
    weight: float
    bloating_level: int  # 1-5
    energy: int  # 1-5
    alcohol_intake: AlcoholIntake = AlcoholIntake.NONE
    movement_done: bool = False
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
