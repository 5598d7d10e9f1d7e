import os
from typing import Optional

import dotenv
from pydantic import BaseModel, Field, field_validator

from content_migration.config.constants.service import (
    DEFAULT_CHUNK_SIZE,
    MAX_CHUNK_SIZE,
    EnvVariables,
)
from content_migration.models.content import Visibility

dotenv.load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ArangoSettings(BaseModel):
    """ArangoDB connection settings"""

    url: str = Field(default="http://localhost:8529", description="ArangoDB host URL")
    username: str = Field(default="root", description="ArangoDB user")
    password: str = Field(default="", description="ArangoDB password")
    db_name: str = Field(default="es", description="Database holding legacy and content collections")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure the host URL doesn't end with a trailing slash."""
        return v.rstrip("/")


class MigrationSettings(BaseModel):
    """Options for a conversion run"""

    delete_sources: bool = Field(default=False, description="Delete legacy records once converted")
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1, le=MAX_CHUNK_SIZE)
    acting_user_id: Optional[str] = Field(default=None, description="Identity performing the migration")
    visibility: Visibility = Field(default=Visibility.ALL_USERS)
    arango: ArangoSettings = Field(default_factory=ArangoSettings)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in _TRUE_VALUES


def load_settings() -> MigrationSettings:
    """Build settings from the environment (and a .env file when present)"""
    arango = ArangoSettings(
        url=os.getenv(EnvVariables.ARANGO_URL.value, "http://localhost:8529"),
        username=os.getenv(EnvVariables.ARANGO_USERNAME.value, "root"),
        password=os.getenv(EnvVariables.ARANGO_PASSWORD.value, ""),
        db_name=os.getenv(EnvVariables.ARANGO_DB_NAME.value, "es"),
    )
    return MigrationSettings(
        delete_sources=_env_flag(EnvVariables.DELETE_SOURCES.value),
        chunk_size=int(os.getenv(EnvVariables.CHUNK_SIZE.value, DEFAULT_CHUNK_SIZE)),
        acting_user_id=os.getenv(EnvVariables.ACTING_USER_ID.value) or None,
        visibility=Visibility(
            os.getenv(EnvVariables.VISIBILITY.value, Visibility.ALL_USERS.value)
        ),
        arango=arango,
    )
