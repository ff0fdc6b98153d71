import bcrypt

from .config import BCRYPT_ROUNDS


def hash_secret(secret: str) -> str:
    """bcrypt hash for worker PINs and admin passwords."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(secret.encode(), salt).decode()


def verify_secret(secret: str | None, hashed: str | None) -> bool:
    if not secret or not hashed:
        return False
    try:
        return bcrypt.checkpw(secret.encode(), hashed.encode())
    except ValueError:
        # stored value is not a bcrypt hash
        return False
