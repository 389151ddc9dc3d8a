"""
Landing CMS - Password Hashing Utilities

Production-grade password hashing using bcrypt.
Work factor comes from BCRYPT_COST (default 12).

Security:
- Never log or expose plaintext passwords
- bcrypt includes salt automatically
- Resistant to GPU/ASIC attacks
- Supports hash upgrades on login
"""

import bcrypt

from landing_cms.auth.errors import PasswordHashingError


# bcrypt only looks at the first 72 bytes of input
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """
    bcrypt wrapper bound to a configured work factor.

    Args:
        rounds: log2 of the bcrypt iteration count (4..31).
                Increase for higher security, decrease for faster tests.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Returns:
            bcrypt hash string (includes salt)

        Raises:
            PasswordHashingError: bcrypt rejected the input

        Example:
            >>> hashed = PasswordHasher(rounds=4).hash("SecureP@ss123")
            >>> hashed.startswith("$2b$04$")
            True
        """
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        except (ValueError, TypeError) as e:
            raise PasswordHashingError("password hashing failed") from e
        return hashed.decode("utf-8")

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against a bcrypt hash.

        Uses constant-time comparison to prevent timing attacks.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8"),
                hashed_password.encode("utf-8"),
            )
        except (ValueError, TypeError):
            # Invalid hash format or over-long input
            return False

    def needs_rehash(self, hashed_password: str) -> bool:
        """
        Check if a hash was produced with a lower work factor than configured.

        Example:
            # After raising BCRYPT_COST from 10 to 12:
            >>> PasswordHasher(rounds=12).needs_rehash(old_hash)  # factor 10
            True
        """
        try:
            # bcrypt hash format: $2b$XX$...
            _, work_factor_str, _ = hashed_password.split("$")[1:4]
            return int(work_factor_str) < self.rounds
        except (ValueError, IndexError):
            # Not a valid bcrypt hash, definitely needs rehash
            return True
