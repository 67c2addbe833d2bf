"""
bcrypt password hasher adapter - Implements PasswordHasher protocol.

Timing oracle prevention:
------------------------
verify() always runs one bcrypt comparison. When there is no stored hash
(unknown account) it compares against a dummy hash made at the same cost
as real hashes, so bcrypt dominates response time equally for existing
and missing accounts.
"""

import bcrypt

_DUMMY_PASSWORD = b"dummy_password_for_timing_safety"


class BcryptPasswordHasher:
    """
    Implements PasswordHasher protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, cost: int = 10) -> None:
        """
        Initialize hasher.

        Args:
            cost: bcrypt work factor (log2 rounds), used for stored hashes
                and for the dummy hash compared when there is none
        """
        self._cost = cost
        self._dummy_hash = bcrypt.hashpw(_DUMMY_PASSWORD, bcrypt.gensalt(rounds=cost)).decode()

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self._cost)).decode()

    def verify(self, password: str, hashed: str | None) -> bool:
        """
        Check password against a stored bcrypt hash.

        Args:
            password: Plaintext password
            hashed: Stored hash, or None when there is no stored credential

        Returns:
            True only if hashed is present and matches password
        """
        candidate_hash = hashed if hashed is not None else self._dummy_hash
        try:
            matched = bcrypt.checkpw(password.encode(), candidate_hash.encode())
        except ValueError:
            # Stored value is not a bcrypt hash
            return False
        return matched and hashed is not None
