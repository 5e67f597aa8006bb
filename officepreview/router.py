import logging
import mimetypes
import os
from typing import Callable

from officepreview.converters.util.zip_archive import BufferLike
from officepreview.exceptions import FileFormatNotSupportedError
from officepreview.mime_types import (
    EXTENSION_MAPPING,
    file_type_for_mime_type,
    is_supported_mime_type,
)

logger = logging.getLogger(__name__)

Converter = Callable[[BufferLike], object]


def _get_converter(file_type: str) -> Converter:
    """Return the converter function for a file type (lazy import)."""
    if file_type in ("docx", "docm"):
        from officepreview.converters.ms_modern.docx_converter import (
            convert_docx_to_html,
        )

        return convert_docx_to_html
    elif file_type in ("xlsx", "xlsm"):
        from officepreview.converters.ms_modern.xlsx_converter import (
            convert_xlsx_to_html,
        )

        return convert_xlsx_to_html
    else:
        raise FileFormatNotSupportedError(
            file_type, f"No converter for file type: {file_type}"
        )


def _detect_file_type(path: str, content_type: str | None = None) -> str | None:
    file_type = file_type_for_mime_type(content_type)
    if file_type is not None:
        logger.debug(f"Detected file type: {file_type} (MIME: {content_type})")
        return file_type

    path = path.lower()
    mime_type, _ = mimetypes.guess_type(path)
    file_type = file_type_for_mime_type(mime_type)
    if file_type is None:
        file_type = EXTENSION_MAPPING.get(os.path.splitext(path)[1])
    if file_type is not None:
        logger.debug(f"Detected file type: {file_type} for file: {path}")
    return file_type


def is_supported_file(path: str, content_type: str | None = None) -> bool:
    """Checks if a preview can be rendered for the path or content type"""
    if is_supported_mime_type(content_type):
        return True
    return _detect_file_type(path, content_type) is not None


def get_converter(path: str, content_type: str | None = None) -> Converter:
    """Analyses the path (and optional content type) and returns a suited converter.
       The file does not need to exist. The filename or content type alone suffices.

    :returns a converter function taking the raw file bytes
    :raises FileFormatNotSupportedError: No converter handles the file
    """
    file_type = _detect_file_type(path, content_type)
    if file_type is None:
        logger.debug(f"File [{path}] with content type [{content_type}] is not supported")
        raise FileFormatNotSupportedError(path)
    return _get_converter(file_type)
