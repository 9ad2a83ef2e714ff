import logging
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.orm import Session
from opensquid.core.cache import invalidate_leaderboard
from opensquid.core.errors import NotFoundError
from opensquid.models.orm import Question, QuizSession, QuizParticipant, UserAnswer, Team, SessionStatus
from opensquid.services.teams import get_team

logger = logging.getLogger(__name__)

# ---- questions ----

def list_questions(db: Session) -> List[Question]:
    # creation order doubles as the question index of a quiz session
    return list(db.scalars(select(Question).order_by(Question.created_at, Question.id)).all())

def get_question(db: Session, question_id: str) -> Question:
    q = db.get(Question, question_id)
    if not q: raise NotFoundError("Question", question_id)
    return q

def create_question(db: Session, question: str, options: List[str], correct_answer: int) -> Question:
    q = Question(question=question, options=list(options), correct_answer=correct_answer)
    db.add(q); db.commit()
    return q

def delete_question(db: Session, question_id: str) -> Question:
    q = get_question(db, question_id)
    db.delete(q); db.commit()
    return q

def question_at(db: Session, index: int) -> Optional[Question]:
    questions = list_questions(db)
    return questions[index] if 0 <= index < len(questions) else None

# ---- sessions ----

def create_session(db: Session, title: str, time_per_question: int) -> QuizSession:
    total = db.scalar(select(func.count()).select_from(Question)) or 0
    s = QuizSession(title=title, status=SessionStatus.PENDING.value, current_question_index=0,
                    time_per_question=time_per_question, total_questions=total, started_at=None, ended_at=None)
    db.add(s); db.commit()
    logger.info(f"Created quiz session {s.id} '{title}' with {total} questions")
    return s

def list_sessions(db: Session, status: Optional[str] = None) -> List[QuizSession]:
    stmt = select(QuizSession).order_by(QuizSession.created_at.desc())
    if status: stmt = stmt.where(QuizSession.status == status)
    return list(db.scalars(stmt).all())

def get_session(db: Session, session_id: str) -> QuizSession:
    s = db.get(QuizSession, session_id)
    if not s: raise NotFoundError("Quiz session", session_id)
    return s

def active_session(db: Session) -> Optional[QuizSession]:
    stmt = (select(QuizSession).where(QuizSession.status == SessionStatus.LIVE.value)
            .order_by(QuizSession.started_at.desc()).limit(1))
    return db.scalar(stmt)

def update_status(db: Session, session_id: str, status: str, current_question_index: Optional[int] = None) -> QuizSession:
    """Plain field update; any status may follow any other."""
    s = get_session(db, session_id)
    s.status = status
    if status == SessionStatus.LIVE.value: s.started_at = datetime.utcnow()
    elif status == SessionStatus.COMPLETED.value: s.ended_at = datetime.utcnow()
    if current_question_index is not None: s.current_question_index = current_question_index
    db.commit()
    logger.info(f"Quiz session {s.id} -> {status} (question {s.current_question_index})")
    return s

def start_session(db: Session, session_id: str) -> QuizSession:
    return update_status(db, session_id, SessionStatus.LIVE.value, 0)

def complete_session(db: Session, session_id: str) -> QuizSession:
    return update_status(db, session_id, SessionStatus.COMPLETED.value)

def delete_session(db: Session, session_id: str) -> QuizSession:
    s = get_session(db, session_id)
    db.delete(s); db.commit()
    invalidate_leaderboard()
    logger.info(f"Deleted quiz session {session_id}")
    return s

# ---- participants ----

def participant_count(db: Session, session_id: str) -> int:
    return db.scalar(select(func.count()).select_from(QuizParticipant).where(QuizParticipant.quiz_session_id == session_id)) or 0

def list_participants(db: Session, session_id: str) -> List[Tuple[QuizParticipant, str]]:
    get_session(db, session_id)
    stmt = (select(QuizParticipant, Team.name).join(Team, Team.id == QuizParticipant.user_id)
            .where(QuizParticipant.quiz_session_id == session_id)
            .order_by(QuizParticipant.score.desc(), QuizParticipant.joined_at))
    return [(p, name) for p, name in db.execute(stmt).all()]

def find_participant(db: Session, session_id: str, user_id: str) -> Optional[QuizParticipant]:
    return db.scalar(select(QuizParticipant).where(QuizParticipant.quiz_session_id == session_id, QuizParticipant.user_id == user_id))

def join_session(db: Session, session_id: str, user_id: str) -> Tuple[QuizParticipant, bool]:
    """Returns (participant, created)."""
    get_session(db, session_id); get_team(db, user_id)
    existing = find_participant(db, session_id, user_id)
    if existing: return existing, False
    p = QuizParticipant(quiz_session_id=session_id, user_id=user_id, score=0, total_questions_answered=0)
    db.add(p); db.commit()
    return p, True

def set_participant_score(db: Session, session_id: str, user_id: str, score: int) -> QuizParticipant:
    # overwrite with the client-computed total
    p = find_participant(db, session_id, user_id)
    if not p: raise NotFoundError("Participant", f"{session_id}/{user_id}")
    p.score = score
    db.commit()
    invalidate_leaderboard()
    return p

# ---- answers ----

def save_answer(db: Session, user_id: str, session_id: str, question_id: str, selected_answer: int,
                is_correct: bool, response_time: Optional[int] = None) -> UserAnswer:
    get_team(db, user_id); get_session(db, session_id); get_question(db, question_id)
    a = UserAnswer(user_id=user_id, quiz_session_id=session_id, question_id=question_id,
                   selected_answer=selected_answer, is_correct=is_correct, response_time=response_time)
    db.add(a)
    p = find_participant(db, session_id, user_id)
    if p: p.total_questions_answered = (p.total_questions_answered or 0) + 1
    db.commit()
    return a

def session_responses(db: Session, session_id: str, question_index: Optional[int] = None) -> List[UserAnswer]:
    stmt = select(UserAnswer).where(UserAnswer.quiz_session_id == session_id)
    if question_index is not None:
        target = question_at(db, question_index)
        if target: stmt = stmt.where(UserAnswer.question_id == target.id)
    return list(db.scalars(stmt.order_by(UserAnswer.answered_at)).all())
