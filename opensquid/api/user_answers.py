from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import Optional
from sqlalchemy.orm import Session
from opensquid.api.quiz_sessions import AnswerOut
from opensquid.core.auth import require_roles
from opensquid.core.database import get_db
from opensquid.services import quiz as quiz_service

router = APIRouter()

class AnswerSubmit(BaseModel):
  user_id: str
  session_id: str
  question_id: str
  selected_answer: int = Field(ge=0)
  is_correct: bool
  response_time: Optional[int] = Field(default=None, ge=0)

@router.post("", response_model=AnswerOut, status_code=201, dependencies=[Depends(require_roles("user", "admin"))])
def save_answer(payload: AnswerSubmit, db: Session = Depends(get_db)):
  return quiz_service.save_answer(db, payload.user_id, payload.session_id, payload.question_id,
                                  payload.selected_answer, payload.is_correct, payload.response_time)
