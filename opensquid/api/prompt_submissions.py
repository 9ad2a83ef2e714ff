from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from opensquid.core.auth import require_roles
from opensquid.core.database import get_db
from opensquid.services import prompts as prompt_service

router = APIRouter()

class SubmissionIn(BaseModel):
  user_id: str
  session_id: str
  image_url: str = Field(min_length=1)
  description: str = Field(min_length=1)

class SubmissionOut(BaseModel):
  model_config = ConfigDict(from_attributes=True)
  id: str
  user_id: str
  session_id: str
  user_name: str
  image_url: str
  description: str
  created_at: datetime
  score: Optional[int] = None

class ScoreIn(BaseModel):
  user_id: str
  session_id: str
  score: int

@router.post("", response_model=SubmissionOut, status_code=201, dependencies=[Depends(require_roles("user", "admin"))])
def submit(payload: SubmissionIn, db: Session = Depends(get_db)):
  return prompt_service.save_submission(db, payload.user_id, payload.session_id, payload.image_url, payload.description)

@router.get("", response_model=List[SubmissionOut], dependencies=[Depends(require_roles("admin"))])
def list_submissions(db: Session = Depends(get_db)):
  return [SubmissionOut(**SubmissionOut.model_validate(s).model_dump(exclude={"score"}), score=score)
          for s, score in prompt_service.list_submissions(db)]

@router.get("/check")
def check_submission(user_id: Optional[str] = None, session_id: Optional[str] = None, db: Session = Depends(get_db)):
  if not user_id or not session_id: raise HTTPException(400, "Missing user_id or session_id")
  return {"exists": prompt_service.has_submitted(db, user_id, session_id)}

@router.patch("", dependencies=[Depends(require_roles("admin"))])
def update_score(payload: ScoreIn, db: Session = Depends(get_db)):
  if prompt_service.update_score(db, payload.user_id, payload.session_id, payload.score) is None:
    raise HTTPException(400, "Failed to update prompt score")
  return {"message": "Prompt score updated successfully"}

@router.delete("/{submission_id}", dependencies=[Depends(require_roles("admin"))])
def delete_submission(submission_id: str, db: Session = Depends(get_db)):
  prompt_service.delete_submission(db, submission_id)
  return {"success": True}
