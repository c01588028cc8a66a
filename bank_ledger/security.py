"""
Credential & Token Module

Verifies user credentials against bcrypt hashes and issues signed,
time-bounded bearer tokens (HS256 JWT) whose subject is the user identifier.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional, TYPE_CHECKING

import bcrypt
import jwt

from .errors import (
    InvalidCredentialsError, InvalidDetailsSuppliedError,
    InvalidTokenError, TokenSigningError
)
from .logging_config import get_logger, log_action

if TYPE_CHECKING:
    from .users import UserManager


# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

# HS256 keys shorter than the hash output are refused
MIN_SECRET_BYTES = 32


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a plaintext password with a fresh bcrypt salt"""
    if not password:
        raise InvalidDetailsSuppliedError("Password is required")
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise InvalidDetailsSuppliedError(f"Password longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a plaintext password against a stored bcrypt hash"""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
    except ValueError:
        # Malformed stored hash or oversized password
        return False


class TokenService:
    """Issues and verifies HS256 bearer tokens"""

    def __init__(
        self,
        secret: str,
        expiry_seconds: int = 600,
        algorithm: str = "HS256",
        issuer: str = "self"
    ):
        self.secret = secret
        self.expiry_seconds = expiry_seconds
        self.algorithm = algorithm
        self.issuer = issuer

    def issue_token(self, subject: str) -> str:
        """
        Build and sign a token for ``subject``

        Raises:
            TokenSigningError: If the signing secret is missing or signing fails
        """
        self._check_secret()

        now = datetime.now(timezone.utc)
        claims = {
            "sub": subject,
            "iss": self.issuer,
            "iat": now,
            "exp": now + timedelta(seconds=self.expiry_seconds),
        }
        try:
            return jwt.encode(claims, self.secret, algorithm=self.algorithm)
        except Exception as e:
            raise TokenSigningError(f"Error creating JWT: {e}") from e

    def verify_token(self, token: str) -> str:
        """
        Verify signature, issuer and expiry and return the subject

        Raises:
            InvalidTokenError: If the token cannot be trusted
            TokenSigningError: If the verification secret is not usable
        """
        self._check_secret()
        if not token:
            raise InvalidTokenError("Missing bearer token")
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "sub", "iss"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        subject = payload.get("sub")
        if not subject:
            raise InvalidTokenError("Token has no subject")
        return subject

    def _check_secret(self) -> None:
        if not self.secret:
            raise TokenSigningError("JWT signing secret is not configured")
        if len(self.secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise TokenSigningError(f"JWT signing secret is shorter than {MIN_SECRET_BYTES} bytes")


class CredentialService:
    """
    Authenticates a user id/password pair and issues a bearer token.

    An unknown user and a wrong password fail with the same error, and both
    paths run a bcrypt comparison so they take similar time.
    """

    def __init__(self, user_manager: 'UserManager', token_service: TokenService, hash_rounds: int = 12):
        self.user_manager = user_manager
        self.token_service = token_service
        self.hash_rounds = hash_rounds
        self.logger = get_logger("bank_ledger.security")
        self._dummy_hash: Optional[str] = None

    def authenticate(self, user_id: str, password: str) -> str:
        """Verify credentials and return a signed token for ``user_id``"""
        user = self.user_manager.find_user(user_id) if user_id else None

        if user is None:
            verify_password(password, self._get_dummy_hash())
            log_action(
                self.logger, "warning", "Authentication failed",
                action="authenticate", resource=f"user:{user_id}",
                extra={"reason": "unknown_user"}
            )
            raise InvalidCredentialsError("Unknown user")

        if not verify_password(password, user.password_hash):
            log_action(
                self.logger, "warning", "Authentication failed",
                user_id=user.id, action="authenticate", resource=f"user:{user.id}",
                extra={"reason": "password_mismatch"}
            )
            raise InvalidCredentialsError("Password mismatch")

        token = self.token_service.issue_token(user.id)
        log_action(
            self.logger, "info", "Token issued",
            user_id=user.id, action="authenticate", resource=f"user:{user.id}",
            extra={"expires_in": self.token_service.expiry_seconds}
        )
        return token

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=self.hash_rounds)).decode("ascii")
        return self._dummy_hash
