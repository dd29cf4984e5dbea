import logging
from typing import Optional

from .gateway import GatewayError
from .models import Profile
from .schemas import ProfileForm

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, gateway, user_id: str):
        self.gateway = gateway
        self.user_id = user_id
        self.profile: Optional[Profile] = None
        self.error: Optional[str] = None

    @property
    def has_profile(self) -> bool:
        return self.profile is not None

    def fetch(self) -> Optional[Profile]:
        self.error = None
        try:
            self.profile = self.gateway.get_profile(self.user_id)
        except GatewayError as e:
            self.error = str(e)
        return self.profile

    def save(self, form: ProfileForm) -> Optional[str]:
        """Insert or replace the profile, keeping XP and streak of an existing one."""
        try:
            existing = self.gateway.get_profile(self.user_id)
            profile = Profile(id=self.user_id, **form.model_dump(),
                              xp=existing.xp if existing else 0,
                              soft_streaks=existing.soft_streaks if existing else 0)
            if existing:
                profile.created_at = existing.created_at
            self.gateway.upsert_profile(profile)
        except GatewayError as e:
            logger.warning("Profile save failed for %s: %s", self.user_id, e)
            return str(e)
        if not existing:
            logger.info("Profile created for %s", self.user_id)
        self.fetch()
        return None

    def update_xp_and_streak(self, xp_gain: int, streak_change: int) -> Optional[str]:
        try:
            current = self.gateway.get_profile(self.user_id)
            if not current:
                return "Profile not found"
            self.profile = self.gateway.update_profile_counters(
                self.user_id,
                current.xp + xp_gain,
                max(0, current.soft_streaks + streak_change),
            )
        except GatewayError as e:
            return str(e)
        return None
