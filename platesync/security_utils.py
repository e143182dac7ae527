"""
Security Utilities
Password hashing, tokens, signed OAuth state, HTML sanitization and token encryption
"""

import logging
import os
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

# Input sanitization
import bleach
from bleach.css_sanitizer import CSSSanitizer

# Token encryption at rest
from cryptography.fernet import Fernet, InvalidToken

# Token generation and validation
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import JWT_ALGORITHM, SECRET_KEY, TOKEN_ENCRYPTION_KEY

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against bcrypt hash"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token"""
    return secrets.token_urlsafe(length)


def generate_verification_code(length: int = 6) -> str:
    """Generate a numeric verification code"""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token
        expires_delta: Token expiration time (default 15 minutes)
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def sign_state(data: dict[str, Any], salt: str = "oauth-state") -> str:
    """Sign an OAuth state payload with itsdangerous"""
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps(data, salt=salt)


def verify_state(token: str, max_age: int = 600, salt: str = "oauth-state") -> Optional[dict[str, Any]]:
    """
    Verify and decode a signed state token

    Returns:
        Decoded data if valid, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        return serializer.loads(token, salt=salt, max_age=max_age)
    except SignatureExpired:
        logger.warning("State token expired")
        return None
    except BadSignature:
        logger.warning("Invalid state token signature")
        return None


# ============================================================================
# TOKEN ENCRYPTION
# ============================================================================


def _get_fernet() -> Optional[Fernet]:
    if not TOKEN_ENCRYPTION_KEY:
        return None
    try:
        return Fernet(TOKEN_ENCRYPTION_KEY)
    except ValueError as e:
        logger.error(f"❌ Invalid TOKEN_ENCRYPTION_KEY: {e}")
        return None


def encrypt_token(value: str) -> str:
    """Encrypt an OAuth token for storage (plaintext when no key is configured)"""
    fernet = _get_fernet()
    if not fernet:
        logger.warning("⚠️ TOKEN_ENCRYPTION_KEY not set - storing OAuth token unencrypted")
        return value
    return fernet.encrypt(value.encode()).decode()


def decrypt_token(value: Optional[str]) -> str:
    """Decrypt a stored OAuth token"""
    if not value:
        return ""
    fernet = _get_fernet()
    if not fernet:
        return value
    try:
        return fernet.decrypt(value.encode()).decode()
    except InvalidToken:
        # Token was stored before encryption was enabled
        return value


# ============================================================================
# INPUT SANITIZATION
# ============================================================================

EMAIL_ALLOWED_TAGS = [
    "a", "b", "blockquote", "body", "br", "center", "div", "em", "font", "h1", "h2", "h3",
    "h4", "h5", "h6", "head", "hr", "html", "i", "img", "li", "meta", "ol", "p", "span",
    "strong", "style", "table", "tbody", "td", "tfoot", "th", "thead", "title", "tr", "u", "ul",
]

EMAIL_ALLOWED_ATTRIBUTES = {
    "*": ["style", "class", "align", "width", "height", "bgcolor", "valign", "border",
          "cellpadding", "cellspacing", "role"],
    "a": ["href", "title", "target"],
    "img": ["src", "alt", "width", "height", "style"],
    "meta": ["charset", "name", "content"],
}

EMAIL_ALLOWED_CSS = [
    "background", "background-color", "border", "border-collapse", "border-radius", "color",
    "display", "font-family", "font-size", "font-weight", "height", "line-height", "margin",
    "margin-bottom", "margin-top", "max-width", "padding", "text-align", "text-decoration", "width",
]


def sanitize_html(html_content: str, allowed_tags: Optional[list] = None) -> str:
    """
    Sanitize HTML content to prevent XSS attacks

    Args:
        html_content: Raw HTML content
        allowed_tags: List of allowed HTML tags (default: email-safe subset)

    Returns:
        Sanitized HTML
    """
    css_sanitizer = CSSSanitizer(allowed_css_properties=EMAIL_ALLOWED_CSS)

    return bleach.clean(
        html_content,
        tags=allowed_tags or EMAIL_ALLOWED_TAGS,
        attributes=EMAIL_ALLOWED_ATTRIBUTES,
        protocols=["http", "https", "mailto", "data"],
        css_sanitizer=css_sanitizer,
        strip=True,
    )


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal and other attacks"""
    filename = os.path.basename(filename or "")
    filename = re.sub(r"[^\w\s\-\.]", "", filename)
    filename = filename.strip(". ")

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[: 255 - len(ext)] + ext

    if not filename:
        filename = f"file_{generate_secure_token(8)}"

    return filename
