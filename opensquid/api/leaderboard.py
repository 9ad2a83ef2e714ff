from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import List
from sqlalchemy.orm import Session
from opensquid.core.database import get_db
from opensquid.services.scoring import get_leaderboard

router = APIRouter()

class LeaderboardEntry(BaseModel):
  id: str
  name: str
  score: float
  quiz: float
  prompt: float
  puzzle: float
  rank: int

@router.get("", response_model=List[LeaderboardEntry])
def leaderboard(db: Session = Depends(get_db)):
  return get_leaderboard(db)
