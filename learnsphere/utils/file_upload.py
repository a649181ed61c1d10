# learnsphere/utils/file_upload.py

import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, UploadFile

from learnsphere.core.config import settings

logger = logging.getLogger(__name__)

MB = 1024 * 1024

# kind -> (allowed extensions, max size in bytes)
MEDIA_RULES: Dict[str, Tuple[List[str], int]] = {
    "image": (settings.allowed_image_types, settings.max_image_size_mb * MB),
    "video": (settings.allowed_video_types, settings.max_video_size_mb * MB),
    "document": (settings.allowed_document_types, settings.max_document_size_mb * MB),
}

STORAGE_FOLDERS = ("courses", "lessons", "users")


class FileUploadService:
    """Service to handle file uploads with UUID naming and storage management."""

    def __init__(self, base_storage_path: str = settings.upload_dir):
        """
        Args:
            base_storage_path: Base directory for file storage, served under /storage
        """
        self.base_storage_path = Path(base_storage_path)
        self._ensure_storage_directories()

    def _ensure_storage_directories(self):
        for folder in STORAGE_FOLDERS:
            (self.base_storage_path / folder).mkdir(parents=True, exist_ok=True)

    def _get_file_extension(self, filename: str) -> str:
        """Extension without the dot, lowercased."""
        return Path(filename).suffix.lower().lstrip(".")

    def _validate(self, file: UploadFile, kind: str) -> None:
        if kind not in MEDIA_RULES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid media type. Must be one of: {', '.join(MEDIA_RULES)}",
            )

        if not file.filename:
            raise HTTPException(status_code=400, detail="No filename provided")

        allowed, _ = MEDIA_RULES[kind]
        extension = self._get_file_extension(file.filename)
        if extension not in allowed:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid {kind} file type. Allowed types: {', '.join(allowed)}",
            )

    async def save(
        self, file: UploadFile, kind: str, folder: str = "courses"
    ) -> Tuple[str, str]:
        """
        Save an uploaded file with UUID naming.

        Args:
            file: The uploaded file
            kind: 'image', 'video' or 'document'
            folder: Subfolder within storage (e.g., 'courses', 'lessons')

        Returns:
            Tuple of (uuid_filename, relative_path)

        Raises:
            HTTPException: If file validation fails or save fails
        """
        self._validate(file, kind)
        _, max_size = MEDIA_RULES[kind]

        try:
            contents = await file.read()
            file_size = len(contents)

            if file_size > max_size:
                raise HTTPException(
                    status_code=400,
                    detail=f"File size exceeds maximum allowed size of {max_size / MB:g}MB",
                )

            if file_size == 0:
                raise HTTPException(status_code=400, detail="Empty file uploaded")

        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Error reading file: {str(e)}")
        finally:
            await file.seek(0)  # Reset file pointer

        uuid_filename = f"{uuid.uuid4()}.{self._get_file_extension(file.filename)}"

        folder_path = self.base_storage_path / folder
        folder_path.mkdir(parents=True, exist_ok=True)
        file_path = folder_path / uuid_filename

        try:
            with open(file_path, "wb") as f:
                f.write(contents)
        except OSError as e:
            logger.error(f"Error saving upload {file_path}: {e}")
            raise HTTPException(status_code=500, detail="Error saving file")

        relative_path = f"{folder}/{uuid_filename}"
        logger.info(f"📁 Stored {kind} upload at {relative_path} ({file_size} bytes)")
        return uuid_filename, relative_path

    def delete(self, relative_path: str) -> bool:
        """
        Delete a stored file.

        Args:
            relative_path: Relative path to the file (e.g., 'courses/uuid.jpg')

        Returns:
            True if deleted, False if there was nothing to delete
        """
        file_path = (self.base_storage_path / relative_path).resolve()
        if self.base_storage_path.resolve() not in file_path.parents:
            logger.warning(f"Refusing to delete outside storage: {relative_path}")
            return False
        if file_path.exists() and file_path.is_file():
            file_path.unlink()
            return True
        return False

    @staticmethod
    def public_url(relative_path: str) -> str:
        return f"/storage/{relative_path}"

    def delete_public_url(self, url: Optional[str]) -> bool:
        """Delete a file previously returned by ``public_url``. External URLs are left alone."""
        if not url or not url.startswith("/storage/"):
            return False
        return self.delete(url[len("/storage/") :])


# Create a singleton instance
file_upload_service = FileUploadService()
