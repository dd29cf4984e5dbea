import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

DEFAULT_JWT_SECRET = "dev-secret-change-me"


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    # Empty DATABASE_URL switches the whole app into mock mode
    DATABASE_URL: str = ""
    JWT_SECRET: str = DEFAULT_JWT_SECRET
    # Chat coach
    COACH_PROVIDER: str = "openai"  # openai | ollama
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    OLLAMA_HOST: str = ""
    OLLAMA_MODEL: str = "llama3:latest"
    # Links sent by mail and OAuth redirects
    APP_URL: str = "http://localhost:8501"
    API_URL: str = "http://localhost:8030"
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    DEV_TOOLS: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            DATABASE_URL=os.getenv("DATABASE_URL", ""),
            JWT_SECRET=os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET),
            COACH_PROVIDER=os.getenv("COACH_PROVIDER", "openai").lower(),
            OPENAI_API_KEY=os.getenv("OPENAI_API_KEY", ""),
            OPENAI_BASE_URL=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            OPENAI_MODEL=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            OLLAMA_HOST=os.getenv("OLLAMA_HOST", ""),
            OLLAMA_MODEL=os.getenv("OLLAMA_MODEL", "llama3:latest"),
            APP_URL=os.getenv("APP_URL", "http://localhost:8501"),
            API_URL=os.getenv("API_URL", "http://localhost:8030"),
            GOOGLE_CLIENT_ID=os.getenv("GOOGLE_CLIENT_ID", ""),
            GOOGLE_CLIENT_SECRET=os.getenv("GOOGLE_CLIENT_SECRET", ""),
            DEV_TOOLS=_flag(os.getenv("DEV_TOOLS")),
        )

    @property
    def mock_mode(self) -> bool:
        return not self.DATABASE_URL

    @property
    def coach_configured(self) -> bool:
        if self.COACH_PROVIDER == "ollama":
            return True
        return bool(self.OPENAI_API_KEY)

    @property
    def google_configured(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET)

    def validate(self) -> None:
        if self.COACH_PROVIDER not in ("openai", "ollama"):
            raise ValueError(f"COACH_PROVIDER must be openai or ollama, got {self.COACH_PROVIDER!r}")
        if not self.mock_mode and self.JWT_SECRET == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set when DATABASE_URL is configured")


config = Config.from_env()
