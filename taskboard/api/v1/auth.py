import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Header
from sqlalchemy.orm import Session

from taskboard.core.database import get_db
from taskboard.core.config import settings
from taskboard.core.security import (
    get_password_hash,
    verify_password,
    create_user_token,
    verify_token,
)
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.schemas.auth import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from taskboard.schemas.project import ProjectRole
from taskboard.schemas.user import UserRole
from taskboard.utils.demo_data import DEMO_PROJECTS
from taskboard.utils.serializers import dump_assignee_names

router = APIRouter()
logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return parts[1]


def resolve_token_subject(token: str) -> int:
    """Verify a token and return the user id it was issued for."""
    payload, error = verify_token(token)
    if error == "expired":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token expired")
    elif error == "invalid":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def get_current_user(
    authorization: Optional[str] = Header(None), db: Session = Depends(get_db)
):
    user_id = resolve_token_subject(_bearer_token(authorization))

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(user_data: RegisterRequest, db: Session = Depends(get_db)):
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Email already registered"
        )

    db_user = User(
        name=user_data.name,
        email=user_data.email,
        passwordhash=get_password_hash(user_data.password),
        role=UserRole.MEMBER.value,
    )

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id}")
    return {"user": db_user, "token": create_user_token(db_user)}


@router.post("/login", response_model=AuthResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.passwordhash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    return {"user": user, "token": create_user_token(user)}


def seed_demo_workspace(db: Session, demo_user: User):
    for seed in DEMO_PROJECTS:
        project = Project(
            name=seed["name"],
            description=seed["description"],
            color=seed["color"],
            creator_id=demo_user.id,
        )
        db.add(project)
        db.flush()
        db.add(
            ProjectMember(
                project_id=project.id,
                user_id=demo_user.id,
                role=ProjectRole.MANAGER.value,
            )
        )
        for position, (title, description, task_status, priority, names) in enumerate(
            seed["tasks"], start=1
        ):
            db.add(
                Task(
                    title=title,
                    description=description,
                    status=task_status,
                    priority=priority,
                    assignee_names=dump_assignee_names(names),
                    project_id=project.id,
                    creator_id=demo_user.id,
                    position=position,
                )
            )


@router.post("/demo", response_model=AuthResponse)
def demo_login(db: Session = Depends(get_db)):
    demo_user = db.query(User).filter(User.email == settings.demo_email).first()

    if not demo_user:
        demo_user = User(
            name="Demo User",
            email=settings.demo_email,
            passwordhash=get_password_hash(settings.demo_password),
            role=UserRole.MEMBER.value,
        )
        db.add(demo_user)
        db.flush()
        seed_demo_workspace(db, demo_user)
        db.commit()
        db.refresh(demo_user)
        logger.info(f"Provisioned demo workspace for user {demo_user.id}")

    return {"user": demo_user, "token": create_user_token(demo_user)}


@router.get("/me", response_model=MeResponse)
def read_me(authorization: Optional[str] = Header(None), db: Session = Depends(get_db)):
    user_id = resolve_token_subject(_bearer_token(authorization))
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"user": user}
