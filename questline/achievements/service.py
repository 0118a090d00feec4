"""
Achievement system.

Catalog rows are seeded into the achievements table; each one is awarded to
a user at most once (UNIQUE user_id + achievement_id) as soon as the user's
journey history meets its criteria.
"""
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from questline.achievements.models import Achievement, UserAchievement
from questline.journeys.models import CheckIn, Journey, ReflectionGate
from questline.journeys.progress import round_half_up

logger = logging.getLogger(__name__)

# criteria_type -> what is measured
#   check_ins           total check-ins across all journeys
#   streak              best streak on any journey
#   gates_completed     reflection gates answered
#   truth_score         most days held at a perfect truth score on one journey
#   journeys_completed  journeys explicitly completed
ACHIEVEMENTS = [
    {
        "key": "first_check_in",
        "name": "First Step",
        "description": "Record your first daily check-in",
        "criteria_type": "check_ins",
        "criteria_value": 1,
        "points_reward": 10,
    },
    {
        "key": "streak_7",
        "name": "Week of Resolve",
        "description": "Reach a 7 check-in streak on a journey",
        "criteria_type": "streak",
        "criteria_value": 7,
        "points_reward": 50,
    },
    {
        "key": "streak_30",
        "name": "Unbroken Path",
        "description": "Reach a 30 check-in streak on a journey",
        "criteria_type": "streak",
        "criteria_value": 30,
        "points_reward": 200,
    },
    {
        "key": "first_gate",
        "name": "Gatekeeper",
        "description": "Complete your first reflection gate",
        "criteria_type": "gates_completed",
        "criteria_value": 1,
        "points_reward": 25,
    },
    {
        "key": "honest_heart",
        "name": "Honest Heart",
        "description": "Keep a perfect truth score for 7 days on one journey",
        "criteria_type": "truth_score",
        "criteria_value": 7,
        "points_reward": 75,
    },
    {
        "key": "first_journey",
        "name": "First Journey",
        "description": "Complete your first journey",
        "criteria_type": "journeys_completed",
        "criteria_value": 1,
        "points_reward": 100,
    },
]


def seed_achievements(db: Session) -> int:
    """Insert catalog entries that are missing. Safe to run repeatedly."""
    existing = {key for (key,) in db.query(Achievement.key).all()}
    created = 0
    for entry in ACHIEVEMENTS:
        if entry["key"] in existing:
            continue
        db.add(Achievement(**entry))
        created += 1
    if created:
        db.commit()
        print(f"[ACHIEVEMENT] seeded {created} catalog entries", flush=True)
    return created


def user_metrics(db: Session, user_id: int) -> dict:
    journeys = db.query(Journey).filter(Journey.user_id == user_id)

    check_ins = (
        db.query(func.count(CheckIn.id))
        .join(Journey, Journey.id == CheckIn.journey_id)
        .filter(Journey.user_id == user_id)
        .scalar()
    ) or 0
    gates = (
        db.query(func.count(ReflectionGate.id))
        .join(Journey, Journey.id == ReflectionGate.journey_id)
        .filter(Journey.user_id == user_id, ReflectionGate.completed.is_(True))
        .scalar()
    ) or 0
    best_streak = journeys.with_entities(func.max(Journey.streak)).scalar() or 0
    perfect_days = (
        journeys.filter(Journey.truth_score == 10)
        .with_entities(func.max(Journey.current_day))
        .scalar()
    ) or 0
    completed = journeys.filter(Journey.completed_at.isnot(None)).count()

    return {
        "check_ins": check_ins,
        "streak": best_streak,
        "gates_completed": gates,
        "truth_score": perfect_days,
        "journeys_completed": completed,
    }


def evaluate_achievements(db: Session, user_id: int) -> list[str]:
    """
    Award every newly met achievement. Flushes but does not commit: the
    caller commits together with the write that triggered the check.
    """
    db.flush()
    earned_ids = {
        achievement_id
        for (achievement_id,) in db.query(UserAchievement.achievement_id)
        .filter(UserAchievement.user_id == user_id)
        .all()
    }
    candidates = [a for a in db.query(Achievement).all() if a.id not in earned_ids]
    if not candidates:
        return []

    metrics = user_metrics(db, user_id)
    awarded = []
    for achievement in candidates:
        if metrics.get(achievement.criteria_type, 0) >= achievement.criteria_value:
            db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id))
            awarded.append(achievement.key)
            logger.info("[ACHIEVEMENT] user=%s earned '%s'", user_id, achievement.key)
    if awarded:
        db.flush()
    return awarded


def get_achievement_summary(db: Session, user_id: int) -> dict:
    """Earned and available achievements plus the totals shown on the page."""
    catalog = db.query(Achievement).order_by(Achievement.points_reward.desc(), Achievement.id.asc()).all()
    earned_at = {
        row.achievement_id: row.earned_at
        for row in db.query(UserAchievement).filter(UserAchievement.user_id == user_id).all()
    }

    earned, available = [], []
    for achievement in catalog:
        item = {
            "key": achievement.key,
            "name": achievement.name,
            "description": achievement.description,
            "image_url": achievement.image_url,
            "points_reward": achievement.points_reward,
            "criteria_type": achievement.criteria_type,
            "criteria_value": achievement.criteria_value,
            "earned": achievement.id in earned_at,
            "earned_at": earned_at.get(achievement.id),
        }
        (earned if item["earned"] else available).append(item)

    total_points = sum(item["points_reward"] for item in earned)
    return {
        "earned": earned,
        "available": available,
        "total_points": total_points,
        "earned_count": len(earned),
        "available_count": len(catalog),
        "completion_rate": round_half_up(len(earned) / (len(catalog) or 1) * 100),
    }
