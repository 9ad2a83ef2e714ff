from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict
from typing import List, Literal, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from opensquid.core.auth import require_roles
from opensquid.core.database import get_db
from opensquid.services import prompts as prompt_service

router = APIRouter()

Action = Literal["pending", "live", "completed"]

class PromptSessionIn(BaseModel):
  title: Optional[str] = None
  action: Optional[Action] = None
  duration: Optional[int] = None

class ActionIn(BaseModel):
  action: Action

class PromptSessionOut(BaseModel):
  model_config = ConfigDict(from_attributes=True)
  id: str
  title: str
  action: str
  duration: Optional[int] = None
  started_at: Optional[datetime] = None
  ended_at: Optional[datetime] = None
  created_at: datetime
  updated_at: Optional[datetime] = None

class JoinIn(BaseModel):
  user_id: str

class PromptParticipantOut(BaseModel):
  model_config = ConfigDict(from_attributes=True)
  id: str
  prompt_session_id: str
  user_id: str
  score: int
  joined_at: datetime

@router.get("", response_model=List[PromptSessionOut])
def list_sessions(db: Session = Depends(get_db)):
  return prompt_service.list_sessions(db)

@router.post("", response_model=PromptSessionOut, status_code=201, dependencies=[Depends(require_roles("admin"))])
def create_session(payload: PromptSessionIn, db: Session = Depends(get_db)):
  if not payload.action or not (payload.title or "").strip() or not payload.duration:
    raise HTTPException(400, "Missing required fields: action, title, duration")
  if payload.duration < 0: raise HTTPException(400, "Duration must be positive")
  return prompt_service.create_session(db, payload.title, payload.action, payload.duration)

@router.patch("/{session_id}", dependencies=[Depends(require_roles("admin"))])
def update_session(session_id: str, payload: ActionIn, db: Session = Depends(get_db)):
  prompt_service.update_action(db, session_id, payload.action)
  return {"success": True}

@router.get("/{session_id}/participants", response_model=List[PromptParticipantOut])
def list_participants(session_id: str, db: Session = Depends(get_db)):
  return prompt_service.list_participants(db, session_id)

@router.post("/{session_id}/participants", response_model=PromptParticipantOut, status_code=201,
             dependencies=[Depends(require_roles("user", "admin"))])
def join_session(session_id: str, payload: JoinIn, response: Response, db: Session = Depends(get_db)):
  p, created = prompt_service.join_session(db, session_id, payload.user_id)
  if not created: response.status_code = 200
  return p
