"""Password hashing with bcrypt."""

from passlib.context import CryptContext

from libala.config import get_settings

settings = get_settings()

# bcrypt_sha256 pre-hashes the password so bytes past bcrypt's 72-byte limit
# still count. Plain bcrypt hashes keep verifying and are flagged for rehash.
pwd_context = CryptContext(
    schemes=["bcrypt_sha256", "bcrypt"],
    deprecated="auto",
    bcrypt_sha256__rounds=settings.bcrypt_rounds,
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    """Hash a password with a per-hash random salt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised or malformed hash
        return False


def needs_rehash(hashed_password: str) -> bool:
    """Check if a stored hash uses a deprecated scheme or settings."""
    try:
        return pwd_context.needs_update(hashed_password)
    except ValueError:
        return False
