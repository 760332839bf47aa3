"""
Configuration, seed loading and logging setup.

Settings come from the environment (TRACKER_* variables); the initial
roster comes from a JSON seed file or the built-in demo roster.
"""

import json
import os
import sys
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from loguru import logger
from pydantic import BaseModel, Field, field_validator

from .credentials import DEFAULT_ROUNDS, BcryptVerifier, is_bcrypt_hash
from .directory import MAX_LEVEL, MIN_LEVEL, Directory
from .models import Presence, UserRecord, UserStats

ENV_PREFIX = "TRACKER_"
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


class SeedUser(BaseModel):
    """
    One user in a seed file.

    ``last_seen_minutes_ago`` is relative to load time so demo rosters
    stay fresh. ``password_hash`` is a bcrypt hash picked up by
    build_verifier; the demo roster has none.
    """
    id: Optional[str] = None
    username: str = Field(min_length=1)
    level: int = Field(ge=MIN_LEVEL, le=MAX_LEVEL)
    presence: Presence = Presence.OFFLINE
    total_online_minutes: int = Field(default=0, ge=0)
    session_count: int = Field(default=0, ge=0)
    last_seen_minutes_ago: Optional[int] = Field(default=None, ge=0)
    password_hash: Optional[str] = None

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("username must not be blank")
        return value

    @field_validator("password_hash")
    @classmethod
    def _bcrypt_hash(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_bcrypt_hash(value):
            raise ValueError("password_hash must be a bcrypt hash")
        return value

    def to_record(self, now: datetime) -> UserRecord:
        last_seen = None
        if self.last_seen_minutes_ago is not None:
            last_seen = now - timedelta(minutes=self.last_seen_minutes_ago)

        return UserRecord(
            user_id=self.id or str(uuid.uuid4()),
            username=self.username,
            level=self.level,
            presence=self.presence,
            stats=UserStats(
                total_online_minutes=self.total_online_minutes,
                session_count=self.session_count,
                last_seen=last_seen,
            ),
        )


# Demo roster used when no seed file is configured
DEFAULT_SEED: List[SeedUser] = [
    SeedUser(id="1", username="AdminPro", level=10, presence=Presence.ONLINE,
             total_online_minutes=48563, session_count=234, last_seen_minutes_ago=0),
    SeedUser(id="2", username="Player007", level=7, presence=Presence.ONLINE,
             total_online_minutes=25420, session_count=145, last_seen_minutes_ago=0),
    SeedUser(id="3", username="NoviceGamer", level=3, presence=Presence.AWAY,
             total_online_minutes=5200, session_count=28, last_seen_minutes_ago=15),
    SeedUser(id="4", username="ElitePlayer", level=9, presence=Presence.OFFLINE,
             total_online_minutes=38900, session_count=189, last_seen_minutes_ago=120),
]


class TrackerConfig(BaseModel):
    """
    Process-wide settings.

    Attributes:
        registration_enabled: Initial state of the self-registration toggle
        seed_file: JSON seed file (None uses the demo roster)
        bcrypt_rounds: Cost factor for BcryptVerifier hashes
        log_level: Minimum loguru level for configure_logging
    """
    registration_enabled: bool = True
    seed_file: Optional[Path] = None
    bcrypt_rounds: int = Field(default=DEFAULT_ROUNDS, ge=4, le=31)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        return validate_log_level(value)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerConfig":
        """
        Build config from TRACKER_* environment variables.

        Args:
            environ: Mapping to read (default: os.environ)

        Returns:
            TrackerConfig

        Raises:
            ValueError: If TRACKER_REGISTRATION_ENABLED is not a boolean word
            pydantic.ValidationError: If a value fails validation
        """
        environ = os.environ if environ is None else environ
        values = {}

        registration = environ.get(f"{ENV_PREFIX}REGISTRATION_ENABLED")
        if registration is not None:
            values["registration_enabled"] = parse_bool(registration)

        seed_file = environ.get(f"{ENV_PREFIX}SEED_FILE")
        if seed_file:
            values["seed_file"] = Path(seed_file)

        rounds = environ.get(f"{ENV_PREFIX}BCRYPT_ROUNDS")
        if rounds:
            values["bcrypt_rounds"] = rounds

        log_level = environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            values["log_level"] = log_level

        return cls(**values)


def validate_log_level(level: str) -> str:
    """
    Normalize a loguru level name.

    Raises:
        ValueError: If loguru has no level with that name
    """
    name = level.strip().upper()
    logger.level(name)
    return name


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"Not a boolean value: {value!r}")


def load_seed(path: Path) -> List[SeedUser]:
    """
    Read a JSON array of seed users.

    Args:
        path: Seed file path

    Returns:
        List[SeedUser]

    Raises:
        ValueError: If the file does not hold a JSON array
        pydantic.ValidationError: If an entry is invalid
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Seed file must contain a JSON array: {path}")

    users = [SeedUser.model_validate(entry) for entry in data]
    logger.debug(f"Loaded {len(users)} seed users from {path}")
    return users


def build_directory(
    config: Optional[TrackerConfig] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Directory:
    """
    Create and populate the shared directory.

    Args:
        config: Settings (default: TrackerConfig())
        clock: Clock handed to the directory

    Returns:
        Populated Directory
    """
    config = config or TrackerConfig()
    directory = Directory(clock=clock)

    seed = seed_users(config)
    now = directory.now()
    directory.seed(user.to_record(now) for user in seed)
    directory.set_registration_enabled(config.registration_enabled)

    return directory


def seed_users(config: TrackerConfig) -> List[SeedUser]:
    """Seed file entries, or the demo roster when no file is configured."""
    return load_seed(config.seed_file) if config.seed_file else DEFAULT_SEED


def build_verifier(
    config: Optional[TrackerConfig] = None,
    directory: Optional[Directory] = None,
) -> BcryptVerifier:
    """
    Create a bcrypt verifier using the configured cost factor.

    When a directory built from the same config is given, the password
    hashes of seeded users are loaded so they can log in.

    Args:
        config: Settings (default: TrackerConfig())
        directory: Directory populated by build_directory

    Returns:
        BcryptVerifier
    """
    config = config or TrackerConfig()
    verifier = BcryptVerifier(rounds=config.bcrypt_rounds)
    if directory is None:
        return verifier

    loaded = 0
    for entry in seed_users(config):
        if entry.password_hash is None:
            continue
        user = directory.find_by_username(entry.username)
        if user is None:
            logger.warning(f"Seed user '{entry.username}' not in directory, password skipped")
            continue
        verifier.set_password_hash(user, entry.password_hash)
        loaded += 1

    logger.debug(f"Loaded {loaded} seeded password hashes")
    return verifier


def configure_logging(level: str = "INFO") -> None:
    """
    Replace loguru's default sink with a stderr sink at the given level.

    Args:
        level: Minimum level name (e.g. "DEBUG", "INFO")

    Raises:
        ValueError: If the level name is unknown (existing sinks are kept)
    """
    level = validate_log_level(level)
    logger.remove()
    logger.add(sys.stderr, level=level)
