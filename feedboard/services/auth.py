"""Authentication service for JWT and password handling."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache

from email_validator import EmailNotValidError, validate_email
from jose import JWTError, jwt
from passlib.context import CryptContext

from feedboard.config import Settings, get_settings
from feedboard.errors import ConflictError, UnauthenticatedError, ValidationError, violation
from feedboard.models.user import User
from feedboard.services.store import DocumentStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 5

REQUIRED_CLAIMS = ("sub", "email", "exp")


# --- Credential store ---


@lru_cache
def get_pwd_context() -> CryptContext:
    """Password hashing context, built once from settings."""
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=get_settings().bcrypt_rounds,
    )


def get_password_hash(password: str) -> str:
    """Hash a password. Each call uses a fresh salt."""
    return get_pwd_context().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Returns False for a mismatch as well as for a hash passlib cannot parse.
    """
    try:
        return get_pwd_context().verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


# --- Token service ---


class InvalidTokenError(Exception):
    """Token is expired, tampered with, or malformed."""


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified token."""

    user_id: str
    email: str
    expires_at: datetime


class TokenService:
    """Issues and verifies signed, time-bound identity tokens.

    Holds the signing secret; it is read once from settings and never mutated.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", lifetime: timedelta | None = None):
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime or timedelta(hours=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            lifetime=timedelta(minutes=settings.jwt_expiration_minutes),
        )

    def issue(self, user_id: int | str, email: str, now: datetime | None = None) -> str:
        """Create a JWT access token for the given identity."""
        issued_at = now or datetime.now(UTC)
        to_encode = {
            "sub": str(user_id),
            "email": email,
            "iat": issued_at.timestamp(),
            "exp": (issued_at + self.lifetime).timestamp(),
        }
        return jwt.encode(to_encode, self._secret, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime | None = None) -> TokenClaims:
        """Decode and validate a JWT token.

        Expiry is checked here rather than by jose so that a token is
        rejected at exactly ``exp`` with no leeway.

        Raises:
            InvalidTokenError: bad signature, malformed token, missing claims
                or expired.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e

        missing = [claim for claim in REQUIRED_CLAIMS if payload.get(claim) in (None, "")]
        if missing:
            raise InvalidTokenError(f"Missing claims: {', '.join(missing)}")

        try:
            expires_at = datetime.fromtimestamp(float(payload["exp"]), UTC)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidTokenError("Malformed exp claim") from e

        current = now or datetime.now(UTC)
        if current >= expires_at:
            raise InvalidTokenError("Token has expired")

        return TokenClaims(user_id=str(payload["sub"]), email=str(payload["email"]), expires_at=expires_at)


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service built from cached settings."""
    return TokenService.from_settings(get_settings())


# --- Registration and login ---


def validate_registration(email: str, password: str, name: str) -> None:
    """Collect every registration input violation, then raise once."""
    errors = []
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        errors.append(violation("email", "E-mail is invalid."))
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(violation("password", "Password too short."))
    if not name or not name.strip():
        errors.append(violation("name", "Name must not be empty."))
    if errors:
        raise ValidationError(errors)


def get_user_by_email(store: DocumentStore, email: str) -> User | None:
    """Get a user by email (exact, case-sensitive match)."""
    return store.find_one(User, email=email)


def create_user(store: DocumentStore, email: str, password: str, name: str) -> User:
    """Register a new user."""
    validate_registration(email, password, name)

    if get_user_by_email(store, email):
        raise ConflictError("User exists already!")

    user = User(
        email=email,
        password_hash=get_password_hash(password),
        name=name.strip(),
        post_ids=[],
    )
    user = store.save(user)
    logger.info(f"Registered user {user.id}")
    return user


def authenticate_user(store: DocumentStore, email: str, password: str) -> User:
    """Authenticate a user by email and password.

    Unknown email and wrong password fail identically.
    """
    user = get_user_by_email(store, email)
    if user is None:
        get_pwd_context().dummy_verify()
        raise UnauthenticatedError("Invalid email or password.")
    if not verify_password(password, user.password_hash):
        raise UnauthenticatedError("Invalid email or password.")
    return user
