"""Process configuration, read once from the environment at startup."""

import os
from typing import List, Optional
from pydantic import BaseModel
from dotenv import load_dotenv


class Settings(BaseModel):
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    api_key: Optional[str] = None
    allowed_origins: List[str] = ["*"]
    server_url: str = "http://localhost:3001"
    port: int = 3001
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and .env if present)."""
        load_dotenv()

        origins = os.getenv("ALLOWED_ORIGINS", "*")

        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            # Older deployments used the service-role name
            supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
            api_key=os.getenv("API_KEY") or None,
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
            server_url=os.getenv("SERVER_URL", "http://localhost:3001").rstrip("/"),
            port=int(os.getenv("PORT", "3001")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
