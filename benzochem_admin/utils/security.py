"""
Security and Authentication Utilities
"""

import base64
import hashlib
import os
import secrets
import string
from datetime import timedelta
from typing import Optional

import bcrypt
import jwt
from dotenv import load_dotenv

from benzochem_admin.utils.clock import utcnow

load_dotenv()

# Configuration
JWT_SECRET = os.getenv("JWT_SECRET", "your-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"
JWT_ISSUER = "benzochem-admin"
JWT_AUDIENCE = "benzochem-admin-dashboard"
SESSION_DURATION_HOURS = int(os.getenv("SESSION_DURATION_HOURS", "24"))

API_KEY_PREFIX = "bzk"
API_KEY_RANDOM_LENGTH = 32
API_KEY_ID_LENGTH = 8
API_KEY_ALPHABET = string.ascii_letters + string.digits


def create_jwt_token(admin_id: str, email: str, role: str) -> str:
    """Create admin session JWT"""
    now = utcnow()
    payload = {
        "admin_id": admin_id,
        "email": email,
        "role": role,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "exp": now + timedelta(hours=SESSION_DURATION_HOURS),
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_jwt_token(token: str) -> Optional[dict]:
    """Decode and verify admin session JWT"""
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            issuer=JWT_ISSUER,
            audience=JWT_AUDIENCE,
        )
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def generate_api_key(environment: str = "live") -> str:
    """Generate a secure API key: bzk_<env>_<32 alphanumerics>"""
    random_part = "".join(
        secrets.choice(API_KEY_ALPHABET) for _ in range(API_KEY_RANDOM_LENGTH)
    )
    return f"{API_KEY_PREFIX}_{environment}_{random_part}"


def derive_key_id(api_key: str) -> str:
    """Public identifier: leading characters of the random portion"""
    random_part = api_key.rsplit("_", 1)[-1]
    return random_part[:API_KEY_ID_LENGTH]


def is_api_key_format(api_key: str) -> bool:
    """Check the bzk_<env>_<random> shape without touching storage"""
    parts = api_key.split("_")
    return (
        len(parts) == 3
        and parts[0] == API_KEY_PREFIX
        and bool(parts[1])
        and len(parts[2]) == API_KEY_RANDOM_LENGTH
        and parts[2].isalnum()
    )


def mask_api_key(environment: str, key_id: str) -> str:
    """Display form of a key that never exposes the secret"""
    return f"{API_KEY_PREFIX}_{environment}_{key_id}...****"


def hash_api_key(api_key: str) -> str:
    """Hash API key for storage"""
    return hashlib.sha256(api_key.encode()).hexdigest()


def _prepare_password(password: str) -> bytes:
    """SHA-256 pre-hash so passwords longer than bcrypt's 72 bytes still count in full"""
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str) -> str:
    """Hash an admin password with bcrypt"""
    return bcrypt.hashpw(_prepare_password(password), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against its stored bcrypt hash"""
    try:
        return bcrypt.checkpw(_prepare_password(password), password_hash.encode())
    except ValueError:
        return False
