from __future__ import annotations

from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()


class Settings(BaseModel):
    storage_backend: str = os.getenv("STORAGE_BACKEND", "memory")
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    redis_password: str | None = os.getenv("REDIS_PASSWORD") or None
    redis_timeout_ms: int = int(os.getenv("REDIS_TIMEOUT_MS", "2000"))
    key_prefix: str = os.getenv("KEY_PREFIX", "queue:")
    audit_log_path: str = os.getenv("AUDIT_LOG_PATH", "logs/audit.jsonl")
    metrics_enabled: bool = os.getenv("METRICS_ENABLED", "true").lower() == "true"
    metrics_path: str = os.getenv("METRICS_PATH", "/metrics")
    service_version: str = os.getenv("SERVICE_VERSION", "1.0.0")


settings = Settings()
