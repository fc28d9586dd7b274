import logging
import uuid
from pathlib import Path

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from poster_shop import config
from poster_shop.errors import FileTooLarge, InvalidFileType
from poster_shop.models import Upload

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def save_upload(db: Session, file: UploadFile) -> Upload:
    """Write an uploaded photo to disk and record it in the registry."""
    if file.content_type not in config.ALLOWED_CONTENT_TYPES:
        raise InvalidFileType("Invalid file type")

    original_name = Path(file.filename or "photo").name
    stored_name = f"{uuid.uuid4()}-{original_name}"
    upload_dir = Path(config.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    dest = upload_dir / stored_name

    size = 0
    try:
        with dest.open("wb") as out:
            while True:
                chunk = file.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > config.MAX_UPLOAD_BYTES:
                    raise FileTooLarge("File exceeds the 25MB limit")
                out.write(chunk)

        record = Upload(
            filename=stored_name,
            original_name=original_name,
            path=str(dest),
            size=size,
        )
        db.add(record)
        db.commit()
    except (FileTooLarge, OSError, SQLAlchemyError):
        db.rollback()
        dest.unlink(missing_ok=True)
        raise
    db.refresh(record)

    logger.info("Stored upload %s (%s, %d bytes)", record.id, stored_name, size)
    return record


def get_upload(db: Session, upload_id: str):
    return db.get(Upload, upload_id)

