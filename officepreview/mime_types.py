MIME_TYPE_MAPPING = {
    # Word processing
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-word.document.macroenabled.12": "docm",
    # Spreadsheets
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel.sheet.macroenabled.12": "xlsm",
}

# Used when the platform's mimetypes database does not know the extension
EXTENSION_MAPPING = {
    ".docx": "docx",
    ".docm": "docm",
    ".xlsx": "xlsx",
    ".xlsm": "xlsm",
}


def file_type_for_mime_type(mime_type: str | None) -> str | None:
    """Map a content type (parameters and case ignored) to a file type."""
    if not mime_type:
        return None
    return MIME_TYPE_MAPPING.get(mime_type.split(";")[0].strip().lower())


def is_supported_mime_type(mime_type: str | None) -> bool:
    return file_type_for_mime_type(mime_type) is not None
