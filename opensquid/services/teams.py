"""
Team accounts: registration, credential checks, bans and the seeded admin.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from opensquid.core.auth import hash_password, verify_password
from opensquid.core.errors import NotFoundError
from opensquid.models.orm import Team, Role

logger = logging.getLogger(__name__)


class EmailTakenError(ValueError):
    pass


class TeamBannedError(PermissionError):
    def __init__(self, team: Team):
        super().__init__(team.ban_reason or "Team is banned")
        self.team = team


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_team(db: Session, team_id: str) -> Team:
    team = db.get(Team, team_id)
    if not team:
        raise NotFoundError("Team", team_id)
    return team


def get_team_by_email(db: Session, email: str) -> Optional[Team]:
    return db.scalar(select(Team).where(Team.email == normalize_email(email)))


def create_team(db: Session, name: str, email: str, password: str, contact_number: str,
                members: List[dict], role: str = Role.USER.value) -> Team:
    if get_team_by_email(db, email):
        raise EmailTakenError(email)
    team = Team(
        name=name.strip(), email=normalize_email(email), password_hash=hash_password(password),
        contact_number=contact_number, team_members=members, role=role, banned=False,
    )
    db.add(team)
    db.commit()
    logger.info(f"Registered team {team.id} ({team.name}) role={role}")
    return team


def list_teams(db: Session, include_admins: bool = True) -> List[Team]:
    stmt = select(Team).order_by(Team.created_at.desc())
    if not include_admins:
        stmt = stmt.where(Team.role != Role.ADMIN.value)
    return list(db.scalars(stmt).all())


def check_credentials(db: Session, email: str, password: str) -> Optional[Team]:
    """Return the team when the password matches, else None."""
    team = get_team_by_email(db, email)
    if not team or not verify_password(password, team.password_hash):
        return None
    return team


def ensure_not_banned(db: Session, team: Team) -> None:
    """Raise TeamBannedError for an active ban; lift it when it has expired."""
    if not team.banned:
        return
    if team.ban_expires is not None and team.ban_expires <= datetime.utcnow():
        lift_ban(db, team)
        return
    raise TeamBannedError(team)


def ban_team(db: Session, team: Team, reason: Optional[str], expires_in_days: Optional[int]) -> Team:
    team.banned = True
    team.ban_reason = reason
    team.ban_expires = datetime.utcnow() + timedelta(days=expires_in_days) if expires_in_days else None
    db.commit()
    logger.info(f"Banned team {team.id} reason={reason!r} expires={team.ban_expires}")
    return team


def lift_ban(db: Session, team: Team) -> Team:
    team.banned = False
    team.ban_reason = None
    team.ban_expires = None
    db.commit()
    logger.info(f"Lifted ban on team {team.id}")
    return team


def seed_admin(db: Session, email: Optional[str], password: Optional[str], name: str) -> Optional[Team]:
    """Create the configured admin account once.

    Returns None when no admin is configured or the email already belongs
    to a regular team.
    """
    if not email or not password:
        return None
    existing = get_team_by_email(db, email)
    if existing is None:
        return create_team(db, name=name, email=email, password=password, contact_number="0000000000",
                           members=[], role=Role.ADMIN.value)
    if not existing.is_admin:
        logger.warning(f"ADMIN_EMAIL {existing.email} belongs to team {existing.id}; no admin account seeded")
        return None
    return existing
