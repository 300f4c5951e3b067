import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class Config(BaseModel):
    app_name: str = "Faculty Appraisal Engine"
    environment: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    api_prefix: str = "/api"
    
    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./appraisal.db")
    
    # Identity: the upstream auth layer forwards the authenticated user id in this header
    identity_header: str = os.getenv("IDENTITY_HEADER", "X-User-Id")
    
    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    commit_hash: str = os.getenv("COMMIT_HASH", "HEAD")
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    # Page cache invalidation hook (fire-and-forget). Disabled when unset.
    revalidate_url: Optional[str] = os.getenv("REVALIDATE_URL") or None
    revalidate_timeout_seconds: float = float(os.getenv("REVALIDATE_TIMEOUT", "2.0"))
    
    # Rate limiting for mutating workflow endpoints
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    workflow_rate_limit: str = os.getenv("WORKFLOW_RATE_LIMIT", "30/minute")

    # Appeal policy: 0 means an appraisal may be returned any number of times
    max_appeals_per_appraisal: int = int(os.getenv("MAX_APPEALS_PER_APPRAISAL", "0"))

settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment == "production" and settings.database_url.startswith("sqlite"):
    _logger.warning("⚠ Running production with SQLite; row locks are not enforced by this backend.")
