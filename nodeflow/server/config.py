"""
Server settings.

Values come from the environment, after an optional `.env` file in the working
directory has been loaded:

    NODEFLOW_HOST          bind address            (default 0.0.0.0)
    NODEFLOW_PORT          bind port               (default 3001)
    NODEFLOW_RELOAD        uvicorn auto-reload     (default false)
    NODEFLOW_LOG_LEVEL     root log level          (default INFO)
    NODEFLOW_CORS_ORIGINS  comma separated origins (default *)
    NODEFLOW_SEED_DEMO     build the demo graph    (default true)
"""
from __future__ import annotations

import logging
import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

LOG_FORMAT = "[%(asctime)s]:%(name)s:(%(levelname)s) - %(message)s"
LOG_DATEFMT = "%H:%M:%S"

_TRUE = {"1", "true", "yes", "on"}


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3001
    reload: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    seed_demo: bool = True

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{value}'")
        return level


def load_settings(environ: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None) -> ServerSettings:
    """Build settings from *environ* (defaults to os.environ after loading `.env`)."""
    if environ is None:
        load_dotenv(dotenv_path)
        environ = os.environ

    values = {}
    if "NODEFLOW_HOST" in environ:
        values["host"] = environ["NODEFLOW_HOST"]
    if "NODEFLOW_PORT" in environ:
        values["port"] = environ["NODEFLOW_PORT"]
    if "NODEFLOW_RELOAD" in environ:
        values["reload"] = environ["NODEFLOW_RELOAD"].strip().lower() in _TRUE
    if "NODEFLOW_LOG_LEVEL" in environ:
        values["log_level"] = environ["NODEFLOW_LOG_LEVEL"]
    if "NODEFLOW_CORS_ORIGINS" in environ:
        values["cors_origins"] = [o.strip() for o in environ["NODEFLOW_CORS_ORIGINS"].split(",") if o.strip()]
    if "NODEFLOW_SEED_DEMO" in environ:
        values["seed_demo"] = environ["NODEFLOW_SEED_DEMO"].strip().lower() in _TRUE

    return ServerSettings(**values)


def configure_logging(settings: ServerSettings) -> None:
    # Configure Logging ONCE at the entry point of the application
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
