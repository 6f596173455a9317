"""
Environment configuration and logging setup
"""

import logging
import os
from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

LOG_FORMAT = "%(levelname)s %(name)s %(message)s"


class Settings(BaseModel):
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    # "memory" keeps everything in process, handy for local runs without Supabase
    store_backend: Literal["supabase", "memory"] = "supabase"
    log_level: str = "INFO"
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
        store_backend=os.getenv("TRACKER_STORE", "supabase"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        port=int(os.getenv("PORT", 8000)),
    )


def configure_logging(level: Optional[str] = None):
    """Install the root handler once; later calls only adjust the level"""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
