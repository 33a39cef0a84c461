"""
Configuration for Zapp Builder
Environment is loaded once at import and frozen into a Settings object
"""

import os
from functools import lru_cache
from typing import List, Optional
from dotenv import load_dotenv, find_dotenv


_ = load_dotenv(find_dotenv())

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_CORS_ORIGINS = "http://localhost:3000"


class Settings:
    """Process-wide configuration built once from the environment"""

    def __init__(
        self,
        gemini_api_key: str,
        gemini_base_url: str = DEFAULT_GEMINI_BASE_URL,
        model: str = DEFAULT_MODEL,
        github_token: Optional[str] = None,
        github_api_url: str = "https://api.github.com",
        postgres: Optional[dict] = None,
        cors_origins: Optional[List[str]] = None,
        tokens_per_minute: int = 250000,
        jwt_secret: Optional[str] = None,
        jwt_audience: str = "authenticated",
    ):
        self.gemini_api_key = gemini_api_key
        self.gemini_base_url = gemini_base_url
        self.model = model
        self.github_token = github_token
        self.github_api_url = github_api_url.rstrip("/")
        self.postgres = postgres or {}
        self.cors_origins = cors_origins or [DEFAULT_CORS_ORIGINS]
        self.tokens_per_minute = tokens_per_minute
        self.jwt_secret = jwt_secret
        self.jwt_audience = jwt_audience

    @classmethod
    def from_env(cls, env=None) -> "Settings":
        env = os.environ if env is None else env

        api_key = env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY")
        if not api_key:
            raise ValueError("GEMINI_API_KEY environment variable is required")

        origins = env.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)

        return cls(
            gemini_api_key=api_key,
            gemini_base_url=env.get("GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL),
            model=env.get("ZAPP_MODEL", DEFAULT_MODEL),
            github_token=env.get("GITHUB_TOKEN") or None,
            github_api_url=env.get("GITHUB_API_URL", "https://api.github.com"),
            postgres={
                "host": env.get("POSTGRES_HOST", "localhost"),
                "port": env.get("POSTGRES_PORT", "5432"),
                "database": env.get("POSTGRES_DB", "postgres"),
                "user": env.get("POSTGRES_USER", "postgres"),
                "password": env.get("POSTGRES_PASSWORD", "password"),
            },
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            tokens_per_minute=int(env.get("TOKENS_PER_MINUTE", "250000")),
            jwt_secret=env.get("SUPABASE_JWT_SECRET") or None,
            jwt_audience=env.get("SUPABASE_JWT_AUDIENCE", "authenticated"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
