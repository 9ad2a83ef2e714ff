import re
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, field_validator, model_validator
from sqlalchemy.orm import Session

from opensquid.core.auth import create_token, get_current_user, TokenData
from opensquid.core.config import settings
from opensquid.core.database import get_db
from opensquid.models.orm import Team
from opensquid.services import teams as team_service

router = APIRouter()

CONTACT_RE = re.compile(r"^\d{10}$")


class TeamMember(BaseModel):
    name: str
    student_id: str

    @field_validator("name", "student_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("is required")
        return v.strip()


class SignUp(BaseModel):
    name: str
    email: EmailStr
    contact_number: str
    password: str
    confirm_password: str
    members: List[TeamMember]

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Team name is required")
        return v

    @field_validator("contact_number")
    @classmethod
    def ten_digits(cls, v: str) -> str:
        if not CONTACT_RE.match(v.strip()):
            raise ValueError("Contact number must be 10 digits")
        return v.strip()

    @field_validator("password")
    @classmethod
    def long_enough(cls, v: str) -> str:
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
        return v

    @field_validator("members")
    @classmethod
    def member_count(cls, v: List[TeamMember]) -> List[TeamMember]:
        if not settings.MIN_TEAM_MEMBERS <= len(v) <= settings.MAX_TEAM_MEMBERS:
            raise ValueError(f"A team has {settings.MIN_TEAM_MEMBERS} to {settings.MAX_TEAM_MEMBERS} members")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class TeamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    email: str
    contact_number: str
    team_members: list
    role: str
    banned: bool
    ban_reason: Optional[str] = None
    ban_expires: Optional[datetime] = None
    created_at: datetime


class Credentials(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    team: TeamOut


def token_for(team: Team) -> str:
    return create_token(team.id, [team.role])


@router.post("/sign-up", response_model=TeamOut, status_code=201)
def sign_up(payload: SignUp, db: Session = Depends(get_db)):
    try:
        team = team_service.create_team(
            db, name=payload.name, email=payload.email, password=payload.password,
            contact_number=payload.contact_number, members=[m.model_dump() for m in payload.members],
        )
    except team_service.EmailTakenError:
        raise HTTPException(status.HTTP_409_CONFLICT, "Email is already registered")
    return team


@router.post("/sign-in", response_model=TokenOut)
def sign_in(payload: Credentials, db: Session = Depends(get_db)):
    team = team_service.check_credentials(db, payload.email, payload.password)
    if not team:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    try:
        team_service.ensure_not_banned(db, team)
    except team_service.TeamBannedError as e:
        raise HTTPException(status.HTTP_403_FORBIDDEN, f"Team is banned: {e}")
    return TokenOut(access_token=token_for(team), team=TeamOut.model_validate(team))


@router.get("/session", response_model=TeamOut)
def current_session(user: TokenData = Depends(get_current_user), db: Session = Depends(get_db)):
    return team_service.get_team(db, user.sub)
