"""
office-preview: HTML previews for Office Open XML packages.

A Python library that renders the readable content of word-processing
(.docx) and spreadsheet (.xlsx) packages as small HTML fragments, without
a native office engine. Includes its own in-memory ZIP container reader.
"""

from pathlib import Path

from officepreview.converters.data_types import DocxHtmlResult, XlsxHtmlResult
from officepreview.converters.util.zip_archive import BufferLike, ZipArchive, open_archive
from officepreview.converters.util.zip_bomb import DEFAULT_ZIP_BOMB_LIMITS, ZipBombLimits
from officepreview.exceptions import (
    ArchiveError,
    ConversionError,
    CorruptCentralDirectoryError,
    CorruptEntryError,
    CorruptLocalHeaderError,
    FileEncryptedError,
    FileFormatNotSupportedError,
    MalformedXmlError,
    MissingPartError,
    MissingRelationshipError,
    NotAZipError,
    NoWorksheetsError,
    OfficePreviewError,
    SheetTooLargeError,
    UnsupportedCompressionError,
    ZipBombError,
)
from officepreview.router import get_converter, is_supported_file

__version__ = "0.1.0"


def convert_docx_to_html(
    data: BufferLike, *, limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS
) -> DocxHtmlResult:
    """Render a DOCX file as an HTML fragment."""
    from officepreview.converters.ms_modern.docx_converter import (
        convert_docx_to_html as _convert_docx_to_html,
    )

    return _convert_docx_to_html(data, limits=limits)


def convert_xlsx_to_html(
    data: BufferLike, *, limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS
) -> XlsxHtmlResult:
    """Render the first worksheet of an XLSX file as an HTML table."""
    from officepreview.converters.ms_modern.xlsx_converter import (
        convert_xlsx_to_html as _convert_xlsx_to_html,
    )

    return _convert_xlsx_to_html(data, limits=limits)


def convert_file(
    path: str | Path, content_type: str | None = None
) -> DocxHtmlResult | XlsxHtmlResult:
    """
    Read a file and render it as an HTML preview.

    Automatically detects the file type based on the content type (if given)
    or the extension and uses the appropriate converter.

    Args:
        path: Path to the file to read.
        content_type: Optional MIME type, takes precedence over the extension.

    Returns:
        - .docx / .docm -> DocxHtmlResult
        - .xlsx / .xlsm -> XlsxHtmlResult

    Raises:
        FileFormatNotSupportedError: If the file type is not supported.
        FileNotFoundError: If the file does not exist.
        OfficePreviewError: If the file cannot be converted.

    Example:
        >>> import officepreview
        >>> print(officepreview.convert_file("report.docx").html)
    """
    path = Path(path)
    converter = get_converter(str(path), content_type)
    return converter(path.read_bytes())


__all__ = [
    # Version
    "__version__",
    # Main functions
    "convert_file",
    "convert_docx_to_html",
    "convert_xlsx_to_html",
    "is_supported_file",
    "get_converter",
    # Container reader
    "ZipArchive",
    "open_archive",
    "ZipBombLimits",
    "DEFAULT_ZIP_BOMB_LIMITS",
    # Results
    "DocxHtmlResult",
    "XlsxHtmlResult",
    # Errors
    "OfficePreviewError",
    "FileFormatNotSupportedError",
    "ArchiveError",
    "NotAZipError",
    "FileEncryptedError",
    "CorruptCentralDirectoryError",
    "CorruptLocalHeaderError",
    "CorruptEntryError",
    "UnsupportedCompressionError",
    "ZipBombError",
    "ConversionError",
    "MissingPartError",
    "MalformedXmlError",
    "MissingRelationshipError",
    "NoWorksheetsError",
    "SheetTooLargeError",
]
