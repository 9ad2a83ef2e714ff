from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, ConfigDict
from typing import Any, List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from opensquid.core.auth import require_roles
from opensquid.core.database import get_db
from opensquid.services import quiz as quiz_service

router = APIRouter()

OPTION_COUNT = 4

class QuestionIn(BaseModel):
  question: Optional[str] = None
  options: Optional[Any] = None
  correct_answer: Optional[int] = None

class QuestionOut(BaseModel):
  model_config = ConfigDict(from_attributes=True)
  id: str
  question: str
  options: List[str]
  correct_answer: int
  created_at: datetime
  updated_at: Optional[datetime] = None

@router.get("", response_model=List[QuestionOut])
def list_questions(db: Session = Depends(get_db)):
  return quiz_service.list_questions(db)

@router.get("/{question_id}", response_model=QuestionOut)
def get_question(question_id: str, db: Session = Depends(get_db)):
  return quiz_service.get_question(db, question_id)

@router.post("", response_model=QuestionOut, status_code=201, dependencies=[Depends(require_roles("admin"))])
def create_question(payload: QuestionIn, db: Session = Depends(get_db)):
  opts = payload.options
  if not (payload.question or "").strip() or not isinstance(opts, list) or len(opts) != OPTION_COUNT:
    raise HTTPException(400, "Invalid question data. Question and 4 options are required.")
  if payload.correct_answer is None or not 0 <= payload.correct_answer < OPTION_COUNT:
    raise HTTPException(400, "Correct answer must be between 0 and 3")
  return quiz_service.create_question(db, payload.question, [str(o) for o in opts], payload.correct_answer)

@router.delete("/{question_id}", dependencies=[Depends(require_roles("admin"))])
def delete_question(question_id: str, db: Session = Depends(get_db)):
  quiz_service.delete_question(db, question_id)
  return {"success": True}
