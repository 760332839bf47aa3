"""
Credential verification collaborators.

The controller never decides on its own whether a credential is valid. It
asks a verifier: any callable taking the candidate record and the
submitted proof and returning True to accept.
"""

import threading
from typing import Any, Dict, Protocol

import bcrypt
from loguru import logger
from .models import UserRecord

DEFAULT_ROUNDS = 12
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def is_bcrypt_hash(value: str) -> bool:
    return isinstance(value, str) and value.startswith(BCRYPT_PREFIXES) and len(value) == 60


class CredentialVerifier(Protocol):
    """Accepts or rejects a login proof for a candidate user."""

    def __call__(self, user: UserRecord, proof: Any) -> bool:
        ...


class BcryptVerifier:
    """
    Password verifier backed by bcrypt hashes.

    Hashes are kept in memory, keyed by user id. Users without a stored
    hash are always rejected.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        """
        Initialize verifier.

        Args:
            rounds: bcrypt cost factor used for new hashes
        """
        self.rounds = rounds
        self._lock = threading.RLock()
        self._hashes: Dict[str, bytes] = {}

    def set_password(self, user: UserRecord, password: str) -> None:
        """
        Store a hash for a user's password, replacing any previous one.

        Args:
            user: User the password belongs to
            password: Plain text password (will be hashed)
        """
        password_hash = bcrypt.hashpw(
            password.encode('utf-8'),
            bcrypt.gensalt(rounds=self.rounds)
        )

        with self._lock:
            self._hashes[user.user_id] = password_hash

        logger.info(f"Password set for user {user.username}")

    def set_password_hash(self, user: UserRecord, password_hash: str) -> None:
        """
        Store an existing bcrypt hash for a user, e.g. from a seed file.

        Args:
            user: User the hash belongs to
            password_hash: bcrypt hash string ($2a$, $2b$ or $2y$ prefix)

        Raises:
            ValueError: If the string is not a bcrypt hash
        """
        if not is_bcrypt_hash(password_hash):
            raise ValueError(f"Not a bcrypt hash for user {user.username}")

        with self._lock:
            self._hashes[user.user_id] = password_hash.encode('utf-8')

    def has_password(self, user: UserRecord) -> bool:
        with self._lock:
            return user.user_id in self._hashes

    def __call__(self, user: UserRecord, proof: Any) -> bool:
        """
        Verify a password against the user's stored hash.

        Args:
            user: Candidate user
            proof: Plain text password

        Returns:
            True if the password matches, False otherwise
        """
        if not isinstance(proof, str):
            return False

        with self._lock:
            password_hash = self._hashes.get(user.user_id)

        if password_hash is None:
            logger.warning(f"No password stored for user {user.username}")
            return False

        return bcrypt.checkpw(proof.encode('utf-8'), password_hash)
