import logging
import os
import uuid

import aiofiles
from fastapi import UploadFile

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class FileTooLargeError(Exception):
    def __init__(self, max_size: int):
        self.max_size = max_size
        super().__init__(f"File exceeds the {max_size} byte limit")


def has_extension(filename: str) -> bool:
    return "." in filename and not filename.startswith(".")


def stored_name_for(original_name: str) -> str:
    """Random on-disk name keeping the original extension."""
    extension = os.path.splitext(original_name)[1].lower() if has_extension(original_name) else ""
    return f"{uuid.uuid4().hex}{extension}"


async def save_upload(upload: UploadFile, upload_dir: str, max_size: int) -> tuple[str, str, int]:
    """Stream an upload to disk under a generated name.

    Returns ``(stored_name, path, size)``. Raises ``FileTooLargeError`` once
    more than ``max_size`` bytes were received; the partial object is removed.
    """
    os.makedirs(upload_dir, exist_ok=True)
    stored_name = stored_name_for(os.path.basename(upload.filename or ""))
    path = os.path.join(upload_dir, stored_name)

    size = 0
    try:
        async with aiofiles.open(path, "wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    raise FileTooLargeError(max_size)
                await out.write(chunk)
    except Exception:
        remove_stored_file(path)
        raise

    logger.info(f"Stored upload {upload.filename} as {stored_name} ({size} bytes)")
    return stored_name, path, size


def remove_stored_file(path: str) -> bool:
    """Delete a stored object. A missing object is skipped, not an error."""
    if not path or not os.path.exists(path):
        return False
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Could not remove stored file {path}: {e}")
        return False
