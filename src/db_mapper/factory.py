"""Connection factory.

Resolves a database profile from ``db.toml`` and opens a ``Connection`` for
it.  Profile selection priority:

1. Explicit ``profile_name`` argument
2. ``DB_PROFILE`` environment variable
3. ``.db-profile`` lock file written by a previous ``connect(..., remember=True)``

A direct ``database_url`` bypasses profiles altogether.

Usage:
    from db_mapper import DAO, builder_for, connect, namespace_for

    conn = await connect("local")
    movies = DAO(Movie, schema=namespace_for("local"), builder=builder_for())
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from db_mapper.config.loader import load_db_config
from db_mapper.config.models import DatabaseProfile
from db_mapper.connection.base import Connection
from db_mapper.connection.postgres import AsyncPostgresConnection
from db_mapper.connection.psycopg_async import AsyncPsycopgConnection
from db_mapper.sql.builder import Dialect, QueryBuilder

logger = logging.getLogger(__name__)

# Profile lock file path (relative to the working directory)
_PROFILE_LOCK_FILE = Path(".db-profile")

_DRIVERS = {
    "psycopg": AsyncPsycopgConnection,
    "sqlalchemy": AsyncPostgresConnection,
}


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


# ============================================================================
# Profile Lock File Operations
# ============================================================================


def read_profile_lock() -> str | None:
    """Read profile name from lock file.

    Returns:
        Profile name if lock file exists, None otherwise
    """
    if _PROFILE_LOCK_FILE.exists():
        return _PROFILE_LOCK_FILE.read_text().strip() or None
    return None


def write_profile_lock(profile_name: str) -> None:
    """Write profile name to lock file."""
    _PROFILE_LOCK_FILE.write_text(profile_name)


def clear_profile_lock() -> None:
    """Remove profile lock file."""
    if _PROFILE_LOCK_FILE.exists():
        _PROFILE_LOCK_FILE.unlink()


def get_active_profile_name() -> str:
    """Get active profile name from env var or lock file.

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_profile = os.environ.get("DB_PROFILE")
    if env_profile:
        return env_profile

    lock_profile = read_profile_lock()
    if lock_profile:
        return lock_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        "Set DB_PROFILE=<name> or pass profile_name to connect().\n"
        "Profiles are defined in db.toml under [profiles.<name>]."
    )


def get_active_profile(
    profile_name: str | None = None, config_path: Path | None = None
) -> tuple[str, DatabaseProfile]:
    """Get the profile name and its configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile configured
        KeyError: If profile not found in db.toml
    """
    if profile_name is None:
        profile_name = get_active_profile_name()
    config = load_db_config(config_path)
    return profile_name, config.profile(profile_name)


# ============================================================================
# Connections
# ============================================================================


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with ``[YOUR-PASSWORD]`` replaced by the URL-quoted
        ``db_password``
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


async def connect(
    profile_name: str | None = None,
    *,
    database_url: str | None = None,
    driver: str | None = None,
    config_path: Path | None = None,
    remember: bool = False,
) -> Connection:
    """Open a connection for a profile or a direct URL.

    Args:
        profile_name: Profile from db.toml.  If None, uses ``DB_PROFILE`` or
            the ``.db-profile`` lock file.
        database_url: Direct URL; bypasses profile resolution.
        driver: ``"psycopg"`` or ``"sqlalchemy"``; overrides the profile's
            driver (default ``"psycopg"``).
        config_path: Path to db.toml (default: ``./db.toml``).
        remember: Write the profile name to the lock file once connected.

    Returns:
        An open connection; the caller closes it.

    Raises:
        ProfileNotFoundError: If no URL and no profile is available
        KeyError: If the profile is not in db.toml
        ValueError: If the driver name is unknown

    Example:
        >>> conn = await connect("local")
        >>> try:
        ...     total = await movies.count(conn)
        ... finally:
        ...     await conn.close()
    """
    if database_url is None:
        profile_name, profile = get_active_profile(profile_name, config_path)
        database_url = resolve_url(profile)
        driver = driver or profile.driver

    driver = driver or "psycopg"
    if driver not in _DRIVERS:
        raise ValueError(
            f"Unknown driver '{driver}'. Expected one of: {', '.join(_DRIVERS)}"
        )

    conn = _DRIVERS[driver](database_url)
    await conn.open()
    logger.debug(f"Connected with {driver} driver (profile: {profile_name or 'direct URL'})")

    if remember and profile_name:
        write_profile_lock(profile_name)
    return conn


def namespace_for(
    profile_name: str | None = None, config_path: Path | None = None
) -> str | None:
    """Namespace DAOs should use for a profile.

    Returns the profile's ``namespace``, falling back to
    ``[mapper].default_namespace``.
    """
    if profile_name is None:
        profile_name = get_active_profile_name()
    config = load_db_config(config_path)
    return config.profile(profile_name).namespace or config.default_namespace


def builder_for(config_path: Path | None = None) -> QueryBuilder:
    """Statement builder for the ``[mapper].dialect`` configured in db.toml.

    Example:
        >>> movies = DAO(Movie, builder=builder_for())
    """
    config = load_db_config(config_path)
    return QueryBuilder(Dialect(name=config.dialect))
