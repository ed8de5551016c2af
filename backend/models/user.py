"""User model definitions."""

import enum

from sqlalchemy import Column, Enum, Integer, String
from backend.database import Base


class Role(str, enum.Enum):
    """The two fixed portal roles."""
    TEACHER = "teacher"
    STUDENT = "student"


class User(Base):
    """Represents a registered teacher or student."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(
        Enum(
            Role,
            name="user_role",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False,
    )
