from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from opensquid.api.auth import TeamOut
from opensquid.core.auth import require_roles
from opensquid.core.database import get_db
from opensquid.services.teams import list_teams

router = APIRouter()

@router.get("", response_model=List[TeamOut], dependencies=[Depends(require_roles("admin"))])
def get_users(db: Session = Depends(get_db)):
    return list_teams(db)
