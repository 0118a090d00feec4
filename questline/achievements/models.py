from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from questline.db.base import Base


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)

    # Stable catalog key, e.g. "first_check_in", "streak_7"
    key = Column(String(64), unique=True, nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(String(512), nullable=True)

    # check_ins | streak | gates_completed | truth_score | journeys_completed
    criteria_type = Column(String(32), nullable=False)
    criteria_value = Column(Integer, nullable=False, default=1)

    points_reward = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserAchievement(Base):
    __tablename__ = "user_achievements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    achievement_id = Column(Integer, ForeignKey("achievements.id"), nullable=False)
    earned_at = Column(DateTime(timezone=True), server_default=func.now())

    achievement = relationship("Achievement")

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )
