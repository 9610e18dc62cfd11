# CoursePortal - Course portal backend
# Copyright (C) 2026 (linuxdev)
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.


import json
import os
from typing import Annotated, List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

CONFIG_PATH_ENV = "COURSEPORTAL_CONFIG"
DEFAULT_CONFIG_PATH = "config.json"


class Settings(BaseSettings):
    """Application settings.

    Values come from config.json (passed in as keyword arguments) and are
    overridden by the environment: ``DATABASE_URL`` and ``COURSEPORTAL_<FIELD>``.
    """
    model_config = SettingsConfigDict(env_prefix="COURSEPORTAL_", extra="ignore", populate_by_name=True)

    database_url: str = Field(
        "sqlite:///./courseportal.db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )
    session_cookie_name: str = "courseportal_session"
    session_cookie_secure: bool = False
    cors_origins: Annotated[List[str], NoDecode] = ["*"]
    log_level: str = "INFO"
    admin_name: str = "Administrator"
    admin_email: str = "admin@example.com"
    admin_password: str = "changeme123"

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings):
        # environment first, config.json values second
        return (env_settings, init_settings)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, value):
        return value.upper()


DEFAULTS = {name: field.get_default(call_default_factory=True) for name, field in Settings.model_fields.items()}


def config_path():
    return os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)


def load_config(path=None) -> Settings:
    """Build settings from config.json (when present) and the environment."""
    path = path or config_path()
    file_values = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            file_values = json.load(f)
    return Settings(**{k: v for k, v in file_values.items() if k in Settings.model_fields})


def create_config_file(path=None):
    """Create config.json file with default settings"""
    path = path or config_path()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(DEFAULTS, f, ensure_ascii=False, indent=4)
    return path


settings = load_config()
