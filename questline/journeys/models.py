from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from questline.db.base import Base

THEMES = ("fantasy", "sci-fi", "adventure", "mystery")


class Journey(Base):
    """
    A multi-day habit campaign told as a themed story.

    started_at NULL  -> draft, no check-ins or resolved gates yet
    completed_at set -> finished; never cleared afterwards

    current_day / streak / truth_score are derived aggregates rewritten on
    every check-in. version is bumped on every write so aggregate updates can
    detect a stale read.
    """

    __tablename__ = "journeys"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    habit = Column(String(255), nullable=False)

    # fantasy | sci-fi | adventure | mystery
    theme = Column(String(16), nullable=False, default="fantasy")

    duration = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    current_day = Column(Integer, nullable=False, default=0)
    streak = Column(Integer, nullable=False, default=0)
    truth_score = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False, default=1)

    user = relationship("User", back_populates="journeys")

    check_ins = relationship(
        "CheckIn",
        back_populates="journey",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CheckIn.day",
    )
    reflection_gates = relationship(
        "ReflectionGate",
        back_populates="journey",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReflectionGate.day",
    )

    __table_args__ = (
        CheckConstraint("truth_score >= 0 AND truth_score <= 10", name="ck_journey_truth_score"),
        CheckConstraint("current_day >= 0", name="ck_journey_current_day"),
    )


class CheckIn(Base):
    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, index=True)

    journey_id = Column(
        Integer,
        ForeignKey("journeys.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Journey-relative day this check-in stands for (0-based)
    day = Column(Integer, nullable=False)

    reflection = Column(Text, nullable=False)
    text_input = Column(Text, nullable=True)
    numeric_input = Column(Float, nullable=True)
    photo_url = Column(String(512), nullable=True)

    # Self-reported honesty for this day's reflection, 0-10
    truth_rating = Column(Integer, nullable=False, default=5)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    journey = relationship("Journey", back_populates="check_ins")

    # One check-in per journey day; a second insert is a conflict.
    __table_args__ = (
        UniqueConstraint("journey_id", "day", name="uq_check_in_journey_day"),
        CheckConstraint("truth_rating >= 0 AND truth_rating <= 10", name="ck_check_in_truth_rating"),
    )


class ReflectionGate(Base):
    """
    Milestone checkpoint. Created in bulk with the journey, completed exactly
    once, never added or removed afterwards.
    """

    __tablename__ = "reflection_gates"

    id = Column(Integer, primary_key=True, index=True)

    journey_id = Column(
        Integer,
        ForeignKey("journeys.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    day = Column(Integer, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    prompt = Column(Text, nullable=False)
    response = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    journey = relationship("Journey", back_populates="reflection_gates")

    __table_args__ = (
        UniqueConstraint("journey_id", "day", name="uq_reflection_gate_journey_day"),
    )
