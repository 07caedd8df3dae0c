import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from taskboard.core.database import get_session_factory
from taskboard.core.permissions import can_access_project
from taskboard.core.security import verify_token
from taskboard.models.user import User
from taskboard.utils.project_access import get_membership

router = APIRouter()
logger = logging.getLogger(__name__)


def _authenticate(token, db: Session):
    if not token:
        return None
    payload, error = verify_token(token)
    if error:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    return db.query(User).filter(User.id == user_id).first()


def _may_join(session_factory, project_id: int, user) -> bool:
    with session_factory() as db:
        member = get_membership(db, project_id, user.id)
        return can_access_project(user, member)


async def _send_error(websocket: WebSocket, message: str, project_id=None):
    await websocket.send_json(
        {"event": "error", "data": {"message": message, "projectId": project_id}}
    )


@router.websocket("/ws")
async def ws_projects(websocket: WebSocket, session_factory=Depends(get_session_factory)):
    # sessions stay short so an idle subscriber does not hold a pooled connection
    with session_factory() as db:
        current_user = _authenticate(websocket.query_params.get("token"), db)
    if not current_user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    broadcaster = websocket.app.state.broadcaster
    logger.info(f"User {current_user.id} connected to project events")

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await _send_error(websocket, "Malformed message")
                continue
            if not isinstance(message, dict):
                await _send_error(websocket, "Malformed message")
                continue

            action = message.get("action")
            project_id = message.get("projectId")
            if not isinstance(project_id, int):
                await _send_error(websocket, "projectId is required")
                continue

            if action == "join-project":
                if not _may_join(session_factory, project_id, current_user):
                    await _send_error(websocket, "Access denied to this project", project_id)
                    continue
                broadcaster.join(project_id, websocket)
                await websocket.send_json({"event": "joined", "data": {"projectId": project_id}})
            elif action == "leave-project":
                broadcaster.leave(project_id, websocket)
                await websocket.send_json({"event": "left", "data": {"projectId": project_id}})
            else:
                await _send_error(websocket, f"Unknown action: {action}", project_id)

    except WebSocketDisconnect:
        logger.info(f"User {current_user.id} disconnected from project events")
    finally:
        broadcaster.disconnect(websocket)
