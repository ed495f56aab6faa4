# utils/common.py
"""Common utilities: upload validation, hashing, and path management"""
import hashlib
import re
import os
from fastapi import UploadFile, HTTPException
import logging

# ⚠️ DO NOT import settings here - causes circular import with config.py
# Settings is imported lazily inside functions that need it

def _get_logger():
    """Lazy logger initialization to avoid circular import"""
    from config import settings
    return logging.getLogger(settings.LOGGER_NAME)


# ============= Path Management =============

def get_project_root() -> str:
    """Returns the absolute path to the project's root directory."""
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def get_log_file_path() -> str:
    """Creates the log directory if it doesn't exist and returns the full log file path."""
    project_root = get_project_root()
    log_dir = os.path.join(project_root, 'log')

    if not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    return os.path.join(log_dir, 'pdfchat.log')


# ============= Upload Validation =============

def validate_uploaded_pdf(file: UploadFile) -> None:
    """Validate presence, MIME type, and size. Raises HTTPException on failure."""
    from config import settings  # Lazy import

    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No PDF file provided")

    if file.content_type not in settings.ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=415, detail="Only PDF files are allowed")

    if file.size and file.size > settings.MAX_FILE_SIZE:
        max_mb = settings.MAX_FILE_SIZE // 1024 // 1024
        raise HTTPException(status_code=413, detail=f"File too large. Max size: {max_mb}MB")


def validate_pdf_content(content: bytes) -> None:
    """Checks the PDF magic number."""
    if not content.startswith(b'%PDF'):
        raise HTTPException(status_code=400, detail="Invalid PDF file")
    _get_logger().debug("PDF magic number verified")


# ============= File Utilities =============

def get_file_hash(content: bytes) -> str:
    """Calculates the SHA256 hash of file content."""
    return hashlib.sha256(content).hexdigest()


def sanitize_filename(filename: str) -> str:
    """Remove dangerous characters from filename."""
    safe_name = re.sub(r'[^\w\-_\.]', '_', os.path.basename(filename))
    return safe_name[:100]


def count_words(text: str) -> int:
    """Number of whitespace-separated tokens."""
    return len(text.split())
