"""Runtime settings read from the environment (and a local .env file)."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from study_companion.db import DEFAULT_DB_PATH

DEFAULT_ATTACHMENTS_DIR = str(Path.home() / ".study_companion" / "attachments")


@dataclass
class Settings:
    db_path: str = DEFAULT_DB_PATH
    attachments_dir: str = DEFAULT_ATTACHMENTS_DIR
    remote_url: Optional[str] = None
    remote_token: Optional[str] = None
    read_timeout: float = 1.2
    write_timeout: float = 2.0
    user_id: str = "local"
    log_level: str = "WARNING"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    payment_secret: Optional[str] = None


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)
    env = os.environ
    return Settings(
        db_path=env.get("STUDY_COMPANION_DB", DEFAULT_DB_PATH),
        attachments_dir=env.get("STUDY_COMPANION_ATTACHMENTS", DEFAULT_ATTACHMENTS_DIR),
        remote_url=env.get("STUDY_COMPANION_REMOTE_URL") or None,
        remote_token=env.get("STUDY_COMPANION_REMOTE_TOKEN") or None,
        read_timeout=float(env.get("STUDY_COMPANION_READ_TIMEOUT", "1.2")),
        write_timeout=float(env.get("STUDY_COMPANION_WRITE_TIMEOUT", "2.0")),
        user_id=env.get("STUDY_COMPANION_USER", "local"),
        log_level=env.get("STUDY_COMPANION_LOG_LEVEL", "WARNING").upper(),
        gemini_api_key=env.get("GEMINI_API_KEY") or None,
        gemini_model=env.get("GEMINI_MODEL", "gemini-1.5-flash"),
        payment_secret=env.get("RAZORPAY_KEY_SECRET") or None,
    )
