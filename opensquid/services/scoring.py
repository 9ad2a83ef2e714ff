"""
Puzzle marks and the combined leaderboard.
"""
import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from opensquid.core.cache import cache, LEADERBOARD_KEY, invalidate_leaderboard
from opensquid.core.config import settings
from opensquid.core.errors import NotFoundError
from opensquid.models.orm import PuzzleMark, QuizParticipant, PromptParticipant, Team, Role

logger = logging.getLogger(__name__)


@dataclass
class BulkSaveResult:
    saved: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)


def validate_scores(items: List[Any]) -> Tuple[List[Tuple[str, float]], List[Dict[str, str]]]:
    """Split raw `{user_id, score}` items into valid pairs and per-item errors.

    A null or missing score counts as 0.
    """
    valid: List[Tuple[str, float]] = []
    errors: List[Dict[str, str]] = []
    for item in items:
        if not isinstance(item, dict):
            errors.append({"user_id": "unknown", "error": "Invalid or missing user_id"})
            continue
        user_id = item.get("user_id")
        if not user_id or not isinstance(user_id, str):
            errors.append({"user_id": str(user_id or "unknown"), "error": "Invalid or missing user_id"})
            continue
        raw = item.get("score")
        try:
            score = 0.0 if raw is None else float(raw)
        except (TypeError, ValueError, OverflowError):
            score = math.nan
        if isinstance(raw, bool) or math.isnan(score) or math.isinf(score):
            errors.append({"user_id": user_id, "error": "Score must be a number or null"})
            continue
        valid.append((user_id, score))
    return valid, errors


def save_puzzle_mark(db: Session, user_id: str, score: float) -> PuzzleMark:
    if db.get(Team, user_id) is None:
        raise NotFoundError("Team", user_id)
    mark = db.get(PuzzleMark, user_id)
    if mark:
        mark.score = score
    else:
        mark = PuzzleMark(user_id=user_id, score=score)
        db.add(mark)
    return mark


def save_puzzle_marks(db: Session, scores: List[Tuple[str, float]]) -> BulkSaveResult:
    """Commit each score on its own; one failure does not undo the others."""
    result = BulkSaveResult()
    for user_id, score in scores:
        try:
            save_puzzle_mark(db, user_id, score)
            db.commit()
        except (NotFoundError, SQLAlchemyError) as e:
            db.rollback()
            logger.error(f"Failed to save puzzle score for team {user_id}: {e}")
            result.failed.append({"user_id": user_id, "error": str(e)})
        else:
            result.saved.append({"user_id": user_id, "score": score})
    logger.info(f"Puzzle marks saved={len(result.saved)} failed={len(result.failed)}")
    if result.saved:
        invalidate_leaderboard()
    return result


def list_puzzle_marks(db: Session) -> List[PuzzleMark]:
    return list(db.scalars(select(PuzzleMark).order_by(PuzzleMark.updated_at.desc())).all())


def _sum_by_team(db: Session, column, team_column) -> Dict[str, float]:
    rows = db.execute(select(team_column, func.coalesce(func.sum(column), 0)).group_by(team_column)).all()
    totals: Dict[str, float] = defaultdict(float)
    for team_id, total in rows:
        totals[team_id] = total
    return totals


def compute_leaderboard(db: Session) -> List[Dict[str, Any]]:
    quiz = _sum_by_team(db, QuizParticipant.score, QuizParticipant.user_id)
    prompt = _sum_by_team(db, PromptParticipant.score, PromptParticipant.user_id)
    puzzle = _sum_by_team(db, PuzzleMark.score, PuzzleMark.user_id)
    teams = db.execute(select(Team.id, Team.name).where(Team.role != Role.ADMIN.value)).all()
    entries = []
    for team_id, name in teams:
        q, p, z = quiz.get(team_id, 0), prompt.get(team_id, 0), puzzle.get(team_id, 0)
        entries.append({"id": team_id, "name": name, "score": q + p + z, "quiz": q, "prompt": p, "puzzle": z})
    entries.sort(key=lambda e: (-e["score"], e["name"].lower()))
    for index, entry in enumerate(entries):
        entry["rank"] = index + 1
    return entries


def get_leaderboard(db: Session) -> List[Dict[str, Any]]:
    cached = cache.get(LEADERBOARD_KEY)
    if cached is not None:
        return cached
    entries = compute_leaderboard(db)
    cache.set(LEADERBOARD_KEY, entries, expire=settings.LEADERBOARD_CACHE_TTL)
    return entries
