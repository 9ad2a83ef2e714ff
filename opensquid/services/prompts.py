"""
Prompt round: admin-driven sessions, team joins, image submissions and
hand-given scores.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from opensquid.core.cache import invalidate_leaderboard
from opensquid.core.errors import NotFoundError
from opensquid.models.orm import PromptSession, PromptParticipant, UserPrompt, SessionStatus
from opensquid.services.teams import get_team

logger = logging.getLogger(__name__)


def list_sessions(db: Session) -> List[PromptSession]:
    return list(db.scalars(select(PromptSession).order_by(PromptSession.created_at.desc())).all())


def get_session(db: Session, session_id: str) -> PromptSession:
    s = db.get(PromptSession, session_id)
    if not s:
        raise NotFoundError("Prompt session", session_id)
    return s


def create_session(db: Session, title: str, action: str, duration: int) -> PromptSession:
    s = PromptSession(title=title, action=action, duration=duration)
    if action == SessionStatus.LIVE.value:
        s.started_at = datetime.utcnow()
    db.add(s)
    db.commit()
    logger.info(f"Created prompt session {s.id} '{title}' action={action} duration={duration}s")
    return s


def update_action(db: Session, session_id: str, action: str) -> PromptSession:
    s = get_session(db, session_id)
    s.action = action
    if action == SessionStatus.LIVE.value:
        s.started_at = datetime.utcnow()
    elif action == SessionStatus.COMPLETED.value:
        s.ended_at = datetime.utcnow()
    db.commit()
    logger.info(f"Prompt session {s.id} -> {action}")
    return s


def find_participant(db: Session, session_id: str, user_id: str) -> Optional[PromptParticipant]:
    return db.scalar(select(PromptParticipant).where(
        PromptParticipant.prompt_session_id == session_id, PromptParticipant.user_id == user_id))


def list_participants(db: Session, session_id: str) -> List[PromptParticipant]:
    get_session(db, session_id)
    stmt = (select(PromptParticipant).where(PromptParticipant.prompt_session_id == session_id)
            .order_by(PromptParticipant.joined_at))
    return list(db.scalars(stmt).all())


def join_session(db: Session, session_id: str, user_id: str) -> Tuple[PromptParticipant, bool]:
    get_session(db, session_id)
    get_team(db, user_id)
    existing = find_participant(db, session_id, user_id)
    if existing:
        return existing, False
    p = PromptParticipant(prompt_session_id=session_id, user_id=user_id, score=0)
    db.add(p)
    db.commit()
    return p, True


def save_submission(db: Session, user_id: str, session_id: str, image_url: str, description: str) -> UserPrompt:
    team = get_team(db, user_id)
    get_session(db, session_id)
    submission = UserPrompt(user_id=user_id, session_id=session_id, user_name=team.name,
                            image_url=image_url, description=description)
    db.add(submission)
    db.commit()
    logger.info(f"Team {user_id} submitted to prompt session {session_id}")
    return submission


def list_submissions(db: Session) -> List[Tuple[UserPrompt, Optional[int]]]:
    """Submissions, newest first, with the team's score in that session."""
    stmt = (
        select(UserPrompt, PromptParticipant.score)
        .outerjoin(PromptParticipant, (PromptParticipant.prompt_session_id == UserPrompt.session_id)
                   & (PromptParticipant.user_id == UserPrompt.user_id))
        .order_by(UserPrompt.created_at.desc())
    )
    return [(s, score) for s, score in db.execute(stmt).all()]


def has_submitted(db: Session, user_id: str, session_id: str) -> bool:
    stmt = select(UserPrompt.id).where(UserPrompt.user_id == user_id, UserPrompt.session_id == session_id).limit(1)
    return db.scalar(stmt) is not None


def update_score(db: Session, user_id: str, session_id: str, score: int) -> Optional[PromptParticipant]:
    """Set a team's score for a session. None when the team took no part in it."""
    p = find_participant(db, session_id, user_id)
    if p is None:
        if not has_submitted(db, user_id, session_id):
            return None
        p = PromptParticipant(prompt_session_id=session_id, user_id=user_id)
        db.add(p)
    p.score = score
    db.commit()
    invalidate_leaderboard()
    logger.info(f"Prompt score for team {user_id} in {session_id} set to {score}")
    return p


def delete_submission(db: Session, submission_id: str) -> UserPrompt:
    s = db.get(UserPrompt, submission_id)
    if not s:
        raise NotFoundError("Submission", submission_id)
    db.delete(s)
    db.commit()
    return s
