import base64
import hashlib
import secrets

import bcrypt

# 32 random bytes -> 43 url-safe characters, 256 bits of entropy
SESSION_TOKEN_BYTES = 32

MIN_PASSWORD_LENGTH = 6


def _prehash(password: str) -> bytes:
    # bcrypt only accepts 72 bytes; a base64 sha256 digest is always 44
    return base64.b64encode(hashlib.sha256(password.encode()).digest())


# Checked against when the email is unknown so both failure paths cost one bcrypt round
_DUMMY_HASH = bcrypt.hashpw(_prehash("dalchat-timing-equalizer"), bcrypt.gensalt())


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str | None) -> bool:
    if hashed is None:
        bcrypt.checkpw(_prehash(plain), _DUMMY_HASH)
        return False
    try:
        return bcrypt.checkpw(_prehash(plain), hashed.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def new_session_token() -> str:
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)
