"""Fixed extension -> category table."""

from typing import Dict, Optional, Tuple

from ..schemas.file import FileCategory

EXTENSION_CATEGORIES: Dict[str, FileCategory] = {}

for _category, _extensions in (
    (FileCategory.DOCUMENT, ("pdf", "doc", "docx", "txt", "rtf", "md")),
    (FileCategory.IMAGE, ("jpg", "jpeg", "png", "gif", "bmp", "svg", "webp")),
    (FileCategory.VIDEO, ("mp4", "avi", "mov", "mkv", "wmv", "flv")),
    (FileCategory.AUDIO, ("mp3", "wav", "flac", "aac", "m4a")),
    (FileCategory.CODE, ("js", "ts", "jsx", "tsx", "html", "css", "scss",
                         "java", "py", "cpp", "c", "php", "go", "rs")),
    (FileCategory.ARCHIVE, ("zip", "rar", "7z", "tar", "gz")),
    (FileCategory.SPREADSHEET, ("csv", "xlsx")),
    (FileCategory.OTHER, ("json", "xml")),
):
    for _ext in _extensions:
        EXTENSION_CATEGORIES[_ext] = _category


def category_for_extension(extension: Optional[str]) -> FileCategory:
    if not extension:
        return FileCategory.OTHER
    return EXTENSION_CATEGORIES.get(extension.lstrip(".").lower(), FileCategory.OTHER)


def split_extension(name: str) -> Tuple[str, str]:
    """``"report.PDF"`` -> ``("report", "pdf")``; no suffix gives ``""``."""
    stem, dot, suffix = name.rpartition(".")
    if not dot or not stem:
        return name, ""
    return stem, suffix.lower()
