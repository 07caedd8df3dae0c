import logging
import os
from typing import List, Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File as FormFile,
    Form,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from fastapi.responses import FileResponse as DownloadResponse
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.api.v1.auth import get_current_user
from taskboard.core.config import settings
from taskboard.core.database import get_db
from taskboard.core.permissions import can_delete_file
from taskboard.models.file import File
from taskboard.models.user import User
from taskboard.schemas.base import MessageResponse
from taskboard.schemas.file import FileResponse
from taskboard.services.project_broadcaster import ProjectBroadcaster, get_broadcaster
from taskboard.utils.file_handling import FileTooLargeError, remove_stored_file, save_upload
from taskboard.utils.project_access import (
    get_membership,
    get_project_or_404,
    get_task_or_404,
    member_project_ids,
    require_project_access,
)
from taskboard.utils.serializers import file_payload

router = APIRouter()
logger = logging.getLogger(__name__)


def _owning_project_id(db: Session, file: File) -> Optional[int]:
    if file.project_id is not None:
        return file.project_id
    if file.task_id is not None:
        return get_task_or_404(db, file.task_id).project_id
    return None


def _get_file_or_404(db: Session, file_id: int) -> File:
    file = db.query(File).filter(File.id == file_id).first()
    if not file:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return file


@router.post("/upload", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    background_tasks: BackgroundTasks,
    file: Optional[UploadFile] = FormFile(None),
    project_id: Optional[int] = Form(None, alias="projectId"),
    task_id: Optional[int] = Form(None, alias="taskId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    scope_project_id = None
    if project_id is not None:
        get_project_or_404(db, project_id)
        require_project_access(db, project_id, current_user)
        scope_project_id = project_id
    if task_id is not None:
        task = get_task_or_404(db, task_id)
        require_project_access(db, task.project_id, current_user)
        scope_project_id = scope_project_id or task.project_id

    try:
        stored_name, path, size = await save_upload(
            file, settings.upload_dir, settings.max_file_size
        )
    except FileTooLargeError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {e.max_size} bytes",
        )

    record = File(
        filename=stored_name,
        original_name=os.path.basename(file.filename),
        mime_type=file.content_type,
        size=size,
        path=path,
        project_id=project_id,
        task_id=task_id,
        user_id=current_user.id,
    )
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_stored_file(path)
        logger.error(f"Failed to record upload {file.filename}; stored object removed")
        raise
    db.refresh(record)

    payload = file_payload(record)
    if scope_project_id is not None:
        background_tasks.add_task(
            broadcaster.publish, scope_project_id, "file-uploaded", payload
        )
    return payload


@router.get("", response_model=List[FileResponse])
def list_files(
    project_id: Optional[int] = Query(None, alias="projectId"),
    task_id: Optional[int] = Query(None, alias="taskId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(File)

    if project_id is not None:
        require_project_access(db, project_id, current_user)
        query = query.filter(File.project_id == project_id)
    if task_id is not None:
        task = get_task_or_404(db, task_id)
        require_project_access(db, task.project_id, current_user)
        query = query.filter(File.task_id == task_id)
    if project_id is None and task_id is None:
        query = query.filter(
            or_(
                File.user_id == current_user.id,
                File.project_id.in_(member_project_ids(db, current_user.id)),
            )
        )

    files = query.order_by(File.created_at.desc(), File.id.desc()).all()
    return [file_payload(file) for file in files]


@router.get("/{file_id}/download")
def download_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    file = _get_file_or_404(db, file_id)

    owning_project_id = _owning_project_id(db, file)
    if owning_project_id is not None:
        require_project_access(db, owning_project_id, current_user)
    elif file.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    if not os.path.exists(file.path):
        logger.warning(f"Stored object for file {file.id} is missing at {file.path}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found on disk")

    return DownloadResponse(
        file.path,
        filename=file.original_name,
        media_type=file.mime_type or "application/octet-stream",
    )


@router.delete("/{file_id}", response_model=MessageResponse)
def delete_file(
    file_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    file = _get_file_or_404(db, file_id)
    member = (
        get_membership(db, file.project_id, current_user.id)
        if file.project_id is not None
        else None
    )
    if not can_delete_file(current_user, file, member):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    owning_project_id = _owning_project_id(db, file)
    if not remove_stored_file(file.path):
        logger.info(f"Stored object for file {file.id} already absent, removing record only")

    db.delete(file)
    db.commit()

    if owning_project_id is not None:
        background_tasks.add_task(
            broadcaster.publish, owning_project_id, "file-deleted", {"fileId": file_id}
        )
    return {"message": "File deleted successfully"}
