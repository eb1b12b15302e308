# screener/services/file_validator.py
"""
Upload safety checks for resume files.

Every check returns a FileValidationResult instead of raising, so a bulk upload
can report a reason per file. validate_resume_file() runs them in order and
stops at the first failure:

  1. file name safety
  2. size bounds
  3. extension allow-list
  4. declared media type allow-list
  5. magic number matches the extension
  6. leading bytes free of script / executable markers
"""

import os
from dataclasses import dataclass
from typing import Optional

from screener.core.config import settings

ALLOWED_EXTENSIONS = (".pdf", ".doc", ".docx")
ALLOWED_MEDIA_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

MAX_FILENAME_LENGTH = 255
SUSPICIOUS_EXTENSIONS = frozenset({"exe", "bat", "cmd", "sh", "js", "vbs", "scr", "php", "asp"})

PDF_MAGIC = b"%PDF"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_MAGIC = b"PK\x03\x04"
# (signature, format label) per extension
FILE_SIGNATURES = {
    ".pdf": (PDF_MAGIC, "PDF"),
    ".doc": (OLE2_MAGIC, "DOC"),
    ".docx": (ZIP_MAGIC, "DOCX"),
}

SCRIPT_MARKERS = (b"<script", b"javascript:")
WINDOWS_EXE_MAGIC = b"MZ"
ELF_MAGIC = b"\x7fELF"


@dataclass(frozen=True)
class FileValidationResult:
    is_valid: bool
    error: Optional[str] = None
    # name of the failed check: name, size, extension, media_type, signature, content
    check: Optional[str] = None

    def __bool__(self) -> bool:
        return self.is_valid


VALID = FileValidationResult(True)


def _fail(check: str, message: str) -> FileValidationResult:
    return FileValidationResult(False, message, check)


def _extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


def validate_file_name(filename: str) -> FileValidationResult:
    if not filename:
        return _fail("name", "File name is missing.")
    if "\0" in filename:
        return _fail("name", "File name contains invalid characters.")
    if len(filename) > MAX_FILENAME_LENGTH:
        return _fail("name", f"File name is too long (max {MAX_FILENAME_LENGTH} characters).")
    if ".." in filename or "/" in filename or "\\" in filename:
        return _fail("name", "File name contains invalid path characters.")

    # resume.exe.pdf and friends: any inner segment that names an executable type
    inner = filename.split(".")[1:-1]
    if any(part.lower() in SUSPICIOUS_EXTENSIONS for part in inner):
        return _fail("name", "File name contains potentially dangerous extensions.")
    return VALID


def validate_file_size(size: int, min_bytes: Optional[int] = None, max_bytes: Optional[int] = None) -> FileValidationResult:
    min_bytes = settings.UPLOAD_MIN_BYTES if min_bytes is None else min_bytes
    max_bytes = settings.UPLOAD_MAX_BYTES if max_bytes is None else max_bytes

    if size > max_bytes:
        max_mb = max_bytes / (1024 * 1024)
        size_mb = size / (1024 * 1024)
        return _fail("size", f"File size ({size_mb:.2f}MB) exceeds maximum allowed size of {max_mb:g}MB.")
    if size < min_bytes:
        return _fail("size", "File is too small or appears to be empty.")
    return VALID


def validate_file_extension(filename: str) -> FileValidationResult:
    if _extension(filename) not in ALLOWED_EXTENSIONS:
        return _fail("extension", f"Invalid file extension. Only {', '.join(ALLOWED_EXTENSIONS)} files are allowed.")
    return VALID


def validate_media_type(media_type: Optional[str]) -> FileValidationResult:
    # drop parameters such as "; charset=binary"
    base = (media_type or "").split(";")[0].strip().lower()
    if base not in ALLOWED_MEDIA_TYPES:
        return _fail("media_type", "Invalid file type. Only PDF, DOC, and DOCX files are supported.")
    return VALID


def validate_file_signature(content: bytes, filename: str) -> FileValidationResult:
    if not content or len(content) < len(OLE2_MAGIC):
        return _fail("signature", "File is corrupted or incomplete.")

    ext = _extension(filename)
    expected = FILE_SIGNATURES.get(ext)
    if expected is None:
        return _fail("signature", "Unsupported file type.")
    magic, label = expected
    if not content.startswith(magic):
        return _fail("signature", f"File extension is {ext} but file content does not match {label} format.")
    return VALID


def check_for_malicious_content(content: bytes, scan_bytes: Optional[int] = None) -> FileValidationResult:
    scan_bytes = settings.UPLOAD_SCAN_BYTES if scan_bytes is None else scan_bytes
    head = content[:scan_bytes]

    lowered = head.lower()
    if any(marker in lowered for marker in SCRIPT_MARKERS):
        return _fail("content", "File contains potentially malicious content.")

    if head.startswith(WINDOWS_EXE_MAGIC) or ELF_MAGIC in head:
        return _fail("content", "File appears to be an executable, which is not allowed.")
    return VALID


def validate_resume_file(
    content: bytes,
    filename: str,
    media_type: Optional[str],
    size: Optional[int] = None,
) -> FileValidationResult:
    """
    Run every upload check in order; the first failure wins.
    `size` defaults to len(content) when the transport did not report one.
    """
    size = len(content) if size is None else size
    checks = (
        lambda: validate_file_name(filename),
        lambda: validate_file_size(size),
        lambda: validate_file_extension(filename),
        lambda: validate_media_type(media_type),
        lambda: validate_file_signature(content, filename),
        lambda: check_for_malicious_content(content),
    )
    for check in checks:
        result = check()
        if not result.is_valid:
            return result
    return VALID
