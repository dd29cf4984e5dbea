from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from datetime import datetime

from .models import ChapterFocus, ChapterStatus, AlcoholIntake

# Auth
class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)

class LoginRequest(BaseModel):
    email: str
    password: str

class EmailRequest(BaseModel):
    email: str

class TokenRequest(BaseModel):
    token: str

class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str = Field(min_length=6)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserOut(BaseModel):
    id: str
    email: str
    mock_mode: bool = False

class OAuthStart(BaseModel):
    url: str

# Profile
class ProfileForm(BaseModel):
    age: int = Field(ge=10, le=120)
    height: float = Field(gt=50, le=272)
    weight: float = Field(gt=20, le=400)
    injury_notes: Optional[str] = None
    long_term_goal: str = ""

class ProfileOut(BaseModel):
    id: str
    age: int
    height: float
    weight: float
    injury_notes: Optional[str]
    long_term_goal: str
    xp: int
    soft_streaks: int
    created_at: datetime

# Chapters
class ChapterForm(BaseModel):
    chapter_name: str = Field(min_length=1, max_length=120)
    duration: int = Field(ge=7, le=365)
    focus: ChapterFocus

class ChapterUpdate(BaseModel):
    chapter_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    duration: Optional[int] = Field(default=None, ge=7, le=365)
    focus: Optional[ChapterFocus] = None
    status: Optional[ChapterStatus] = None

class StatusRequest(BaseModel):
    status: ChapterStatus

class ChapterOut(BaseModel):
    id: str
    chapter_name: str
    duration: int
    focus: ChapterFocus
    status: ChapterStatus
    start_date: Optional[str]
    created_at: datetime
    progress: float = 0.0
    days_elapsed: int = 0

# Check-ins
class CheckInForm(BaseModel):
    weight: float = Field(gt=20, le=400)
    bloating_level: int = Field(ge=1, le=5)
    energy: int = Field(ge=1, le=5)
    alcohol_intake: AlcoholIntake = AlcoholIntake.NONE
    movement_done: bool = False
    notes: Optional[str] = None

class CheckInOut(BaseModel):
    id: str
    date: str
    weight: float
    bloating_level: int
    energy: int
    alcohol_intake: AlcoholIntake
    movement_done: bool
    notes: Optional[str]
    created_at: datetime

class CheckInSaved(BaseModel):
    xp_gained: int
    created: bool
    check_in: Optional[CheckInOut]

class CheckInSummary(BaseModel):
    has_today: bool
    missed_days: int
    today: Optional[CheckInOut]
    last: Optional[CheckInOut]
    recent: List[CheckInOut]

class DashboardOut(BaseModel):
    profile: Optional[ProfileOut]
    active_chapter: Optional[ChapterOut]
    has_checked_in_today: bool
    missed_days: int
    recent_check_ins: List[CheckInOut]

# Coach
class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class ChatRequest(BaseModel):
    messages: List[ChatMessage]

class ChatReply(BaseModel):
    reply: str
    configured: bool

# Maintenance
class SeedOut(BaseModel):
    ok: bool
    message: str
