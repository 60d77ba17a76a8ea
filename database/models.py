"""
SQLAlchemy ORM models for users, contacts, groups and templates.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    # Firebase uid
    user_id = Column(String(128), primary_key=True)
    name = Column(String(255))
    email = Column(String(255))
    photo_url = Column(String(1024))
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    last_login = Column(DateTime(timezone=True))
    # Encrypted, serialized CredentialBundle. Never sent to clients.
    google_tokens = Column(Text, nullable=True)

    contacts = relationship("Contact", back_populates="user", cascade="all, delete-orphan")
    groups = relationship("Group", back_populates="user", cascade="all, delete-orphan")
    templates = relationship("Template", back_populates="user", cascade="all, delete-orphan")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(128), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255))
    email = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    user = relationship("User", back_populates="contacts")

    __table_args__ = (Index("ix_contacts_user_id", "user_id"),)


class Group(Base):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(128), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    user = relationship("User", back_populates="groups")
    members = relationship("GroupContact", back_populates="group", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_groups_user_id", "user_id"),)


class GroupContact(Base):
    __tablename__ = "group_contacts"

    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True)
    contact_id = Column(String(36), ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True)
    added_at = Column(DateTime(timezone=True), default=_utcnow)

    group = relationship("Group", back_populates="members")


class Template(Base):
    __tablename__ = "templates"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(128), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255))
    content = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    user = relationship("User", back_populates="templates")

    __table_args__ = (Index("ix_templates_user_id", "user_id"),)
