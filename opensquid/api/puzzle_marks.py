from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from typing import Any, List
from datetime import datetime
from sqlalchemy.orm import Session
from opensquid.core.auth import require_roles
from opensquid.core.database import get_db
from opensquid.services import scoring

router = APIRouter()

class MarksIn(BaseModel):
  scores: Any = None

class MarkOut(BaseModel):
  model_config = ConfigDict(from_attributes=True)
  user_id: str
  score: float
  updated_at: datetime

@router.post("", dependencies=[Depends(require_roles("admin"))])
def save_marks(payload: MarksIn, db: Session = Depends(get_db)):
  if not isinstance(payload.scores, list):
    return JSONResponse({"message": 'Invalid data format. "scores" must be an array.'}, status_code=400)
  if not payload.scores:
    return JSONResponse({"message": "No scores to save."}, status_code=400)
  valid, errors = scoring.validate_scores(payload.scores)
  if not valid:
    return JSONResponse({"message": "No valid scores to save.", "errors": errors}, status_code=400)
  result = scoring.save_puzzle_marks(db, valid)
  # rejected items count against the batch alongside failed saves
  failures = errors + result.failed
  saved, failed = len(result.saved), len(failures)
  if not failed:
    return JSONResponse({"message": "All scores saved successfully!", "saved_count": saved}, status_code=200)
  if not saved:
    return JSONResponse({"message": "Failed to save any scores.", "errors": failures}, status_code=500)
  return JSONResponse({"message": f"Partially saved: {saved} success, {failed} failed.", "saved_count": saved,
                       "failed_count": failed, "errors": failures}, status_code=207)

@router.get("", response_model=List[MarkOut], dependencies=[Depends(require_roles("admin"))])
def list_marks(db: Session = Depends(get_db)):
  return scoring.list_puzzle_marks(db)
