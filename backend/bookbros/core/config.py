from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import json
from pathlib import Path

from bookbros.core.members import Member, normalize_email
from bookbros.services.rotation import RotationConfig


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./bookbros.db"
    
    # CORS - can be JSON string or comma-separated string
    CORS_ORIGINS: str = '["http://localhost:3000"]'
    
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    
    # Club roster, in rotation order: [{"email": "...", "name": "..."}, ...]
    MEMBERS_JSON: str = "[]"
    
    # Book of the month rotation
    ROTATION_START_YEAR: int = 2026
    ROTATION_START_MONTH: int = 1
    
    # Reading challenge
    CHALLENGE_YEAR: int = 2026
    
    # Supabase JWT verification (local)
    SUPABASE_URL: str = ""
    SUPABASE_JWT_SECRET: str = ""
    SUPABASE_JWT_AUD: str = "authenticated"
    SUPABASE_JWT_ISS: str = ""
    
    # Language model used by the recommendation flow
    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    ANTHROPIC_API_URL: str = "https://api.anthropic.com/v1/messages"
    RECOMMENDATION_TIMEOUT_SECONDS: float = 60.0
    
    model_config = SettingsConfigDict(
        # Load from backend/.env (relative to this file's parent's parent)
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )
    
    def require_supabase(self) -> None:
        """Raise if the settings needed to verify member tokens are missing."""
        if not self.SUPABASE_JWT_SECRET or self.SUPABASE_JWT_SECRET.strip() == "":
            raise RuntimeError(
                "SUPABASE_JWT_SECRET is not set. Add SUPABASE_JWT_SECRET from your Supabase Project Settings -> API -> JWT Secret."
            )
        if not self.SUPABASE_URL and not self.SUPABASE_JWT_ISS:
            raise RuntimeError(
                "SUPABASE_URL is not set. Create backend/.env with SUPABASE_URL=https://YOUR_PROJECT_REF.supabase.co"
            )
    
    @property
    def jwt_issuer(self) -> str:
        # Default issuer if not explicitly set
        if self.SUPABASE_JWT_ISS and self.SUPABASE_JWT_ISS.strip():
            return self.SUPABASE_JWT_ISS
        return f"{self.SUPABASE_URL.rstrip('/')}/auth/v1"
    
    @property
    def members(self) -> list[Member]:
        """Parse MEMBERS_JSON into the ordered club roster."""
        try:
            parsed = json.loads(self.MEMBERS_JSON or "[]")
        except json.JSONDecodeError as e:
            raise RuntimeError(f"MEMBERS_JSON is not valid JSON: {e}")
        if not isinstance(parsed, list):
            raise RuntimeError("MEMBERS_JSON must be a JSON list of {email, name} objects")
        
        roster: list[Member] = []
        seen = set()
        for entry in parsed:
            email = normalize_email(entry.get("email", ""))
            if not email or email in seen:
                continue
            seen.add(email)
            roster.append(Member(email=email, name=entry.get("name") or email.split("@")[0]))
        return roster
    
    @property
    def member_emails(self) -> list[str]:
        return [m.email for m in self.members]
    
    @property
    def rotation_config(self) -> RotationConfig:
        return RotationConfig(
            start_year=self.ROTATION_START_YEAR,
            start_month=self.ROTATION_START_MONTH,
            order=tuple(self.member_emails),
        )
    
    def get_masked_database_url(self) -> str:
        """Return DATABASE_URL with password masked for logging."""
        from urllib.parse import urlparse, urlunparse
        parsed = urlparse(self.DATABASE_URL)
        if not parsed.password:
            return self.DATABASE_URL
        masked_netloc = f"{parsed.username}:***@{parsed.hostname}"
        if parsed.port:
            masked_netloc += f":{parsed.port}"
        return urlunparse((
            parsed.scheme,
            masked_netloc,
            parsed.path,
            parsed.params,
            parsed.query,
            parsed.fragment
        ))
    
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS from JSON string or comma-separated string."""
        if not self.CORS_ORIGINS:
            return ["http://localhost:3000"]
        
        try:
            # Try parsing as JSON first
            parsed = json.loads(self.CORS_ORIGINS)
            if isinstance(parsed, list):
                return parsed
            # If it's a string, treat as single origin
            return [str(parsed)]
        except (json.JSONDecodeError, TypeError):
            # Fall back to comma-separated string
            origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
            return origins if origins else ["http://localhost:3000"]


settings = Settings()
