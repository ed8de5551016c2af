"""Credential checks and session tokens.

``IdentityService`` is built once at startup with the signing secret and shared
by every request. It knows nothing about routes: the session middleware turns
cookies into identities, and the guards in ``dependencies`` decide access.
"""

import logging
from dataclasses import dataclass

import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.core.errors import DuplicateIdentity, InvalidCredentials, InvalidInput, InvalidRole, StorageFailure
from backend.models.user import Role, User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt only looks at the first 72 bytes.
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(id=user.id, email=user.email, role=Role(user.role))


@dataclass(frozen=True)
class Anonymous:
    """The caller has no valid session."""


ANONYMOUS = Anonymous()

SessionIdentity = Identity | Anonymous


def bcrypt_secret(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(password: str) -> str:
    return pwd_context.hash(bcrypt_secret(password))


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(bcrypt_secret(password), password_hash)


def parse_role(value: str | Role) -> Role:
    try:
        return Role(value.strip().lower() if isinstance(value, str) else value)
    except ValueError as exc:
        raise InvalidRole() from exc


class IdentityService:
    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm

    def register(self, db: Session, email: str, password: str, role: str | Role) -> Identity:
        user_role = parse_role(role)
        email = (email or "").strip()
        if not email or not password:
            raise InvalidInput("Email and password are required.")

        try:
            if db.query(User).filter(User.email == email).first() is not None:
                raise DuplicateIdentity()

            user = User(email=email, password_hash=hash_password(password), role=user_role)
            db.add(user)
            db.commit()
            db.refresh(user)
        except IntegrityError as exc:
            # Another signup for the same email won the race.
            db.rollback()
            raise DuplicateIdentity() from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Could not create user account")
            raise StorageFailure() from exc

        logger.info("Registered %s account %s", user_role.value, user.id)
        return Identity.from_user(user)

    def authenticate(self, db: Session, email: str, password: str) -> Identity:
        try:
            user = db.query(User).filter(User.email == (email or "").strip()).first()
        except SQLAlchemyError as exc:
            logger.exception("Could not look up user for login")
            raise StorageFailure() from exc

        if user is None or not password or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise InvalidCredentials()
        return Identity.from_user(user)

    def issue_token(self, identity: Identity) -> str:
        claims = {"sub": str(identity.id), "email": identity.email, "role": identity.role.value}
        return jwt_handler.create_access_token(claims, self._secret_key, self._algorithm)

    def verify_token(self, token: str | None) -> SessionIdentity:
        if not token:
            return ANONYMOUS
        try:
            payload = jwt_handler.decode_access_token(token, self._secret_key, self._algorithm)
            return Identity(id=int(payload["sub"]), email=str(payload["email"]), role=Role(payload["role"]))
        except (jwt.PyJWTError, KeyError, TypeError, ValueError):
            return ANONYMOUS
