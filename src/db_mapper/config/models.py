"""Pydantic models for database configuration."""

from typing import Literal

from pydantic import BaseModel, Field


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    driver: Literal["psycopg", "sqlalchemy"] = "psycopg"
    namespace: str | None = None  # PostgreSQL schema qualifying DAO tables


class DatabaseConfig(BaseModel):
    """Complete database configuration from db.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    dialect: Literal["postgres"] = "postgres"
    default_namespace: str | None = None

    def profile(self, name: str) -> DatabaseProfile:
        """Look up a profile by name.

        Raises:
            KeyError: If the profile is not configured.
        """
        if name not in self.profiles:
            raise KeyError(
                f"Profile '{name}' not found in db.toml.\n"
                f"Available profiles: {', '.join(self.profiles) or '(none)'}"
            )
        return self.profiles[name]
