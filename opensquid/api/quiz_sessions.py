from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from opensquid.core.auth import require_roles
from opensquid.core.config import settings
from opensquid.core.database import get_db
from opensquid.services import quiz as quiz_service

router = APIRouter()

Status = Literal["pending", "live", "completed"]

class SessionCreate(BaseModel):
  title: str = Field(min_length=1)
  time_per_question: Optional[int] = Field(default=None, ge=1)

class SessionUpdate(BaseModel):
  status: Status
  current_question_index: Optional[int] = Field(default=None, ge=0)

class SessionOut(BaseModel):
  model_config = ConfigDict(from_attributes=True)
  id: str
  title: str
  status: str
  current_question_index: int
  time_per_question: int
  total_questions: int
  started_at: Optional[datetime] = None
  ended_at: Optional[datetime] = None
  created_at: datetime

class ActiveSessionOut(SessionOut):
  participant_count: int

class JoinIn(BaseModel):
  user_id: str

class ParticipantOut(BaseModel):
  model_config = ConfigDict(from_attributes=True)
  id: str
  quiz_session_id: str
  user_id: str
  score: int
  total_questions_answered: int
  joined_at: datetime
  user_name: Optional[str] = None

class ScoreIn(BaseModel):
  score: int

class AnswerOut(BaseModel):
  model_config = ConfigDict(from_attributes=True)
  id: str
  user_id: str
  quiz_session_id: str
  question_id: str
  selected_answer: int
  is_correct: bool
  response_time: Optional[int] = None
  answered_at: datetime

@router.post("", response_model=SessionOut, status_code=201, dependencies=[Depends(require_roles("admin"))])
def create_session(payload: SessionCreate, db: Session = Depends(get_db)):
  return quiz_service.create_session(db, payload.title, payload.time_per_question or settings.DEFAULT_TIME_PER_QUESTION)

@router.get("", response_model=List[SessionOut])
def list_sessions(status: Optional[Status] = None, db: Session = Depends(get_db)):
  return quiz_service.list_sessions(db, status)

@router.get("/active", response_model=Optional[ActiveSessionOut])
def active_session(response: Response, db: Session = Depends(get_db)):
  response.headers["Cache-Control"] = "no-store"
  s = quiz_service.active_session(db)
  if not s: return None
  return ActiveSessionOut(**SessionOut.model_validate(s).model_dump(), participant_count=quiz_service.participant_count(db, s.id))

@router.get("/{session_id}", response_model=SessionOut)
def get_session(session_id: str, db: Session = Depends(get_db)):
  return quiz_service.get_session(db, session_id)

@router.patch("/{session_id}", dependencies=[Depends(require_roles("admin"))])
def update_session(session_id: str, payload: SessionUpdate, db: Session = Depends(get_db)):
  quiz_service.update_status(db, session_id, payload.status, payload.current_question_index)
  return {"success": True}

@router.post("/{session_id}/start", response_model=SessionOut, dependencies=[Depends(require_roles("admin"))])
def start_session(session_id: str, db: Session = Depends(get_db)):
  return quiz_service.start_session(db, session_id)

@router.post("/{session_id}/complete", response_model=SessionOut, dependencies=[Depends(require_roles("admin"))])
def complete_session(session_id: str, db: Session = Depends(get_db)):
  return quiz_service.complete_session(db, session_id)

@router.delete("/{session_id}", dependencies=[Depends(require_roles("admin"))])
def delete_session(session_id: str, db: Session = Depends(get_db)):
  quiz_service.delete_session(db, session_id)
  return {"success": True}

@router.get("/{session_id}/participants", response_model=List[ParticipantOut])
def list_participants(session_id: str, db: Session = Depends(get_db)):
  return [ParticipantOut(**ParticipantOut.model_validate(p).model_dump(exclude={"user_name"}), user_name=name)
          for p, name in quiz_service.list_participants(db, session_id)]

@router.post("/{session_id}/participants", response_model=ParticipantOut, status_code=201,
             dependencies=[Depends(require_roles("user", "admin"))])
def join_session(session_id: str, payload: JoinIn, response: Response, db: Session = Depends(get_db)):
  p, created = quiz_service.join_session(db, session_id, payload.user_id)
  if not created: response.status_code = 200
  return p

@router.patch("/{session_id}/participants/{user_id}", dependencies=[Depends(require_roles("user", "admin"))])
def update_participant_score(session_id: str, user_id: str, payload: ScoreIn, db: Session = Depends(get_db)):
  quiz_service.set_participant_score(db, session_id, user_id, payload.score)
  return {"success": True}

@router.get("/{session_id}/responses", response_model=List[AnswerOut])
def session_responses(session_id: str, question_index: Optional[int] = None, db: Session = Depends(get_db)):
  return quiz_service.session_responses(db, session_id, question_index)
