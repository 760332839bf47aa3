"""
Unit tests for configuration and seed loading.
"""

import json
import sys

import bcrypt
import pytest
from loguru import logger
from pydantic import ValidationError

from activity_tracker.core import (
    DEFAULT_SEED,
    Presence,
    SeedUser,
    TrackerConfig,
    build_directory,
    build_verifier,
    configure_logging,
    SessionController,
    load_seed,
)


class TestTrackerConfig:
    """Test settings defaults and environment loading."""

    def test_defaults(self):
        """Test default settings."""
        config = TrackerConfig.from_env({})

        assert config.registration_enabled is True
        assert config.seed_file is None
        assert config.bcrypt_rounds == 12
        assert config.log_level == "INFO"

    def test_from_env(self, tmp_path):
        """Test that TRACKER_* variables are applied."""
        seed = tmp_path / "seed.json"
        config = TrackerConfig.from_env({
            "TRACKER_REGISTRATION_ENABLED": "off",
            "TRACKER_SEED_FILE": str(seed),
            "TRACKER_BCRYPT_ROUNDS": "6",
            "TRACKER_LOG_LEVEL": "debug",
        })

        assert config.registration_enabled is False
        assert config.seed_file == seed
        assert config.bcrypt_rounds == 6
        assert config.log_level == "DEBUG"

    def test_bad_boolean(self):
        """Test that unknown boolean words are rejected."""
        with pytest.raises(ValueError):
            TrackerConfig.from_env({"TRACKER_REGISTRATION_ENABLED": "maybe"})

    def test_unknown_log_level(self):
        """Test that level names loguru does not know are rejected."""
        with pytest.raises(ValidationError):
            TrackerConfig.from_env({"TRACKER_LOG_LEVEL": "verbose"})

    def test_known_log_levels(self):
        """Test that loguru level names are accepted in any case."""
        assert TrackerConfig(log_level=" success ").log_level == "SUCCESS"
        assert TrackerConfig(log_level="trace").log_level == "TRACE"

    def test_rounds_out_of_range(self):
        """Test that bcrypt rounds are bounded."""
        with pytest.raises(ValidationError):
            TrackerConfig.from_env({"TRACKER_BCRYPT_ROUNDS": "2"})


class TestSeed:
    """Test seed validation and loading."""

    def test_load_seed(self, tmp_path):
        """Test that a JSON seed file is parsed into SeedUser entries."""
        path = tmp_path / "seed.json"
        path.write_text(json.dumps([
            {"id": "7", "username": "Alice", "level": 10, "presence": "online"},
            {"username": "Bob", "level": 2},
        ]))

        users = load_seed(path)

        assert [user.username for user in users] == ["Alice", "Bob"]
        assert users[0].presence is Presence.ONLINE
        assert users[1].presence is Presence.OFFLINE

    def test_seed_must_be_array(self, tmp_path):
        """Test that non-array seed files are rejected."""
        path = tmp_path / "seed.json"
        path.write_text(json.dumps({"username": "Alice", "level": 1}))

        with pytest.raises(ValueError):
            load_seed(path)

    @pytest.mark.parametrize(
        "entry",
        [
            {"username": "Alice", "level": 0},
            {"username": "Alice", "level": 11},
            {"username": "   ", "level": 1},
            {"username": "Alice", "level": 1, "session_count": -1},
            {"username": "Alice", "level": 1, "presence": "afk"},
        ],
    )
    def test_invalid_entries(self, entry):
        """Test that invalid seed entries fail validation."""
        with pytest.raises(ValidationError):
            SeedUser.model_validate(entry)


class TestBuildDirectory:
    """Test directory construction from config."""

    def test_default_roster(self, clock):
        """Test that the demo roster is loaded without a seed file."""
        directory = build_directory(TrackerConfig(), clock=clock)

        assert len(directory) == len(DEFAULT_SEED)
        admin = directory.find_by_username("adminpro")
        assert admin.level == 10
        assert admin.presence is Presence.ONLINE
        assert admin.stats.session_count == 234
        assert directory.get("3").stats.last_seen == clock.now.replace(minute=45, hour=11)

    def test_seed_file_and_registration(self, tmp_path, clock):
        """Test that the seed file and registration flag are applied."""
        path = tmp_path / "seed.json"
        path.write_text(json.dumps([{"username": "Solo", "level": 5}]))

        directory = build_directory(
            TrackerConfig(seed_file=path, registration_enabled=False),
            clock=clock,
        )

        assert [user.username for user in directory.list_all()] == ["Solo"]
        assert directory.registration_enabled is False


class TestBuildVerifier:
    """Test verifier construction from config."""

    def test_rounds_from_config(self):
        """Test that the configured cost factor is used."""
        verifier = build_verifier(TrackerConfig(bcrypt_rounds=4))

        assert verifier.rounds == 4

    def test_seeded_password_hashes(self, tmp_path, clock):
        """Test that seeded users with a password hash can log in."""
        password_hash = bcrypt.hashpw(b"hunter2", bcrypt.gensalt(rounds=4)).decode("utf-8")
        path = tmp_path / "seed.json"
        path.write_text(json.dumps([
            {"username": "Alice", "level": 10, "password_hash": password_hash},
            {"username": "Bob", "level": 2},
        ]))
        config = TrackerConfig(seed_file=path, bcrypt_rounds=4)
        directory = build_directory(config, clock=clock)

        verifier = build_verifier(config, directory)
        controller = SessionController(directory, verifier=verifier)

        assert verifier.has_password(directory.find_by_username("alice"))
        assert not verifier.has_password(directory.find_by_username("bob"))
        controller.login("alice", "hunter2")
        assert controller.is_authenticated

    def test_invalid_password_hash_rejected(self):
        """Test that seed entries with a non-bcrypt hash fail validation."""
        with pytest.raises(ValidationError):
            SeedUser.model_validate({"username": "Alice", "level": 1, "password_hash": "plaintext"})


class TestConfigureLogging:
    """Test loguru sink setup."""

    def test_level_filters_output(self, capsys):
        """Test that messages below the configured level are dropped."""
        configure_logging("warning")
        try:
            logger.debug("hidden debug line")
            logger.warning("visible warning line")
            err = capsys.readouterr().err
        finally:
            logger.remove()
            logger.add(sys.__stderr__)

        assert "visible warning line" in err
        assert "hidden debug line" not in err

    def test_unknown_level_keeps_existing_sinks(self):
        """Test that a rejected level name leaves logging working."""
        messages = []
        handler_id = logger.add(lambda message: messages.append(message.record["message"]))
        try:
            with pytest.raises(ValueError):
                configure_logging("verbose")
            logger.warning("still delivered")
        finally:
            logger.remove(handler_id)

        assert "still delivered" in messages
