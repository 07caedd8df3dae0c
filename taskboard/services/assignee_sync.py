import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.models.project_member import ProjectMember
from taskboard.models.user import User
from taskboard.schemas.project import ProjectRole
from taskboard.utils.project_access import get_membership

logger = logging.getLogger(__name__)


def sync_assignee_members(db: Session, project_id: int, names: list[str]) -> int:
    """Grant project membership to users whose display name matches an assignee.

    Matching is exact on the trimmed name and the first user found wins, so
    duplicate display names are not disambiguated. Each insert is committed
    on its own; a failing name is logged and skipped. Returns the number of
    memberships created.
    """
    added = 0
    for name in names:
        trimmed = name.strip()
        if not trimmed:
            continue
        try:
            user = db.query(User).filter(User.name == trimmed).order_by(User.id).first()
            if user is None:
                continue
            if get_membership(db, project_id, user.id) is not None:
                continue
            db.add(
                ProjectMember(
                    project_id=project_id,
                    user_id=user.id,
                    role=ProjectRole.MEMBER.value,
                )
            )
            db.commit()
            added += 1
            logger.info(f"Added {trimmed!r} (user {user.id}) to project {project_id} as assignee")
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Could not add member {trimmed!r} to project {project_id}: {e}")
    return added
