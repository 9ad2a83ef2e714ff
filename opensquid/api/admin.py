import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from opensquid.api.auth import Credentials, TeamOut, token_for
from opensquid.core.auth import require_roles
from opensquid.core.database import get_db
from opensquid.models.orm import Team, Question, QuizSession, PromptSession, UserPrompt, Role, SessionStatus
from opensquid.services import quiz as quiz_service
from opensquid.services import teams as team_service

logger = logging.getLogger(__name__)

router = APIRouter()


class AdminLoginOut(BaseModel):
    success: bool
    message: str
    redirect_url: str
    access_token: str
    token_type: str = "bearer"


class BanIn(BaseModel):
    reason: Optional[str] = None
    expires_in_days: Optional[int] = Field(default=None, ge=1)


class Summary(BaseModel):
    teams: int
    questions: int
    quiz_sessions: dict
    prompt_sessions: int
    prompt_submissions: int
    live_quiz_session_id: Optional[str] = None


@router.post("/login", response_model=AdminLoginOut)
def admin_login(payload: Credentials, db: Session = Depends(get_db)):
    team = team_service.get_team_by_email(db, payload.email)
    if not team:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    if not team.is_admin:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Access Denied")
    if not team_service.check_credentials(db, payload.email, payload.password):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    logger.info(f"Admin login {team.email}")
    return AdminLoginOut(success=True, message="Admin login successful", redirect_url="/admin", access_token=token_for(team))


@router.get("/teams", response_model=List[TeamOut], dependencies=[Depends(require_roles("admin"))])
def list_teams(db: Session = Depends(get_db)):
    return team_service.list_teams(db, include_admins=False)


@router.post("/teams/{team_id}/ban", response_model=TeamOut, dependencies=[Depends(require_roles("admin"))])
def ban_team(team_id: str, payload: BanIn, db: Session = Depends(get_db)):
    team = team_service.get_team(db, team_id)
    if team.is_admin:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Admins cannot be banned")
    return team_service.ban_team(db, team, payload.reason, payload.expires_in_days)


@router.post("/teams/{team_id}/unban", response_model=TeamOut, dependencies=[Depends(require_roles("admin"))])
def unban_team(team_id: str, db: Session = Depends(get_db)):
    return team_service.lift_ban(db, team_service.get_team(db, team_id))


@router.get("/summary", response_model=Summary, dependencies=[Depends(require_roles("admin"))])
def summary(db: Session = Depends(get_db)):
    count = lambda stmt: db.scalar(stmt) or 0
    by_status = {s.value: 0 for s in SessionStatus}
    for st, n in db.execute(select(QuizSession.status, func.count()).group_by(QuizSession.status)).all():
        by_status[st] = n
    live = quiz_service.active_session(db)
    return Summary(
        teams=count(select(func.count()).select_from(Team).where(Team.role != Role.ADMIN.value)),
        questions=count(select(func.count()).select_from(Question)),
        quiz_sessions=by_status,
        prompt_sessions=count(select(func.count()).select_from(PromptSession)),
        prompt_submissions=count(select(func.count()).select_from(UserPrompt)),
        live_quiz_session_id=live.id if live else None,
    )
