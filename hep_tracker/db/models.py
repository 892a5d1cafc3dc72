from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def generate_record_id() -> str:
    """Record ids look like the hosted store's: "rec" + 14 hex characters."""
    return f"rec{uuid.uuid4().hex[:14]}"


class Base(DeclarativeBase):
    """Base class for all record store models."""


class Client(Base):
    """A physiotherapy client.

    Clients sign in with their email, which is also the key every
    client-facing lookup uses.
    """

    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_record_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True)
    date_joined: Mapped[str | None] = mapped_column(String(10), nullable=True)


class Exercise(Base):
    """An entry in the therapist's exercise library."""

    __tablename__ = "exercises"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_record_id)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)


class Assignment(Base):
    """An exercise prescribed to one client with sets and reps."""

    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_record_id)
    client_id: Mapped[str] = mapped_column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    exercise_id: Mapped[str] = mapped_column(String, ForeignKey("exercises.id"), nullable=False)
    sets: Mapped[int] = mapped_column(Integer, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (Index("idx_assignments_client_id", "client_id"),)


class Completion(Base):
    """An assignment marked done on one calendar day.

    completion_date is stored as "YYYY-MM-DD".
    """

    __tablename__ = "completions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_record_id)
    assignment_id: Mapped[str] = mapped_column(String, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False)
    completion_date: Mapped[str] = mapped_column(String(10), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("assignment_id", "completion_date", name="uq_completions_assignment_day"),
        Index("idx_completions_assignment_id", "assignment_id"),
    )
