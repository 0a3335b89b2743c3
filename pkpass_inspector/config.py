"""
Runtime configuration read from environment variables (and a .env file).
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from .services.pkpass_validator.signature_verifier import PASS_TYPE_ID_OID

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"  # Vite dev server


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    max_file_size: int = 10 * 1024 * 1024  # 10 MB
    rate_limit_requests: int = 30
    rate_limit_window: int = 300
    cors_origins: List[str] = field(default_factory=lambda: DEFAULT_CORS_ORIGINS.split(","))
    pass_type_oid: str = PASS_TYPE_ID_OID
    verify_manifest: bool = False
    trust_forwarded_for: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load .env (if present) and build settings from the environment."""
        load_dotenv()
        origins = os.getenv("PKPASS_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        return cls(
            max_file_size=int(os.getenv("PKPASS_MAX_FILE_SIZE", 10 * 1024 * 1024)),
            rate_limit_requests=int(os.getenv("PKPASS_RATE_LIMIT_REQUESTS", 30)),
            rate_limit_window=int(os.getenv("PKPASS_RATE_LIMIT_WINDOW", 300)),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            pass_type_oid=os.getenv("PKPASS_TYPE_ID_OID", PASS_TYPE_ID_OID),
            verify_manifest=_env_bool("PKPASS_VERIFY_MANIFEST"),
            trust_forwarded_for=_env_bool("PKPASS_TRUST_FORWARDED_FOR"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
