class OfficePreviewError(Exception):
    """Base class for all errors raised while building a preview."""

    def __init__(self, message: str, *, cause: Exception = None):
        super().__init__(message)
        self.__cause__ = cause  # Optional chaining for debugging


class FileFormatNotSupportedError(OfficePreviewError):
    """Raised when no converter handles the given file."""

    def __init__(self, file_path: str, message: str = None, *, cause: Exception = None):
        self.file_path = file_path
        if message is None:
            message = f"Preview file format not supported: {file_path}"
        super().__init__(message, cause=cause)


###########
# Archive #
###########


class ArchiveError(OfficePreviewError):
    """Raised by the ZIP container reader."""


class NotAZipError(ArchiveError):
    """The end-of-central-directory record could not be found."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "End of central directory not found; the data is not a ZIP archive"
        super().__init__(message, cause=cause)


class FileEncryptedError(NotAZipError):
    """The package is an encrypted OOXML file wrapped in an OLE container."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "The file is encrypted or password-protected"
        super().__init__(message, cause=cause)


class CorruptCentralDirectoryError(ArchiveError):
    """A central directory record is missing, truncated or misplaced."""


class CorruptLocalHeaderError(ArchiveError):
    """A local file header is missing or does not fit into the buffer."""


class CorruptEntryError(ArchiveError):
    """An entry payload failed to decompress or verify."""


class UnsupportedCompressionError(ArchiveError):
    """The entry uses a compression method other than stored or deflate."""

    def __init__(self, method: int, name: str = None, *, cause: Exception = None):
        self.method = method
        self.name = name
        message = f"Unsupported ZIP compression method: {method}"
        if name:
            message += f" [{name}]"
        super().__init__(message, cause=cause)


class ZipBombError(ArchiveError):
    """The archive exceeds the configured size or ratio limits."""


##############
# Conversion #
##############


class ConversionError(OfficePreviewError):
    """Raised by the document converters."""


class MissingPartError(ConversionError):
    """A required part is not present in the package."""

    def __init__(self, part: str, message: str = None, *, cause: Exception = None):
        self.part = part
        if message is None:
            message = f"Package did not include {part}"
        super().__init__(message, cause=cause)


class MalformedXmlError(ConversionError):
    """A required part could not be parsed as XML."""

    def __init__(self, part: str, message: str = None, *, cause: Exception = None):
        self.part = part
        if message is None:
            message = f"Unable to parse XML part {part}"
            if cause is not None:
                message += f": {cause}"
        super().__init__(message, cause=cause)


class MissingRelationshipError(ConversionError):
    """The worksheet relationship could not be resolved."""


class NoWorksheetsError(ConversionError):
    """The workbook does not declare any worksheet."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Workbook did not contain any worksheets"
        super().__init__(message, cause=cause)


class SheetTooLargeError(ConversionError):
    """The worksheet spans more cells than the configured limit allows."""

    def __init__(self, rows: int, columns: int, max_cells: int, *, cause: Exception = None):
        self.rows = rows
        self.columns = columns
        message = (
            f"Worksheet spans {rows} rows x {columns} columns, "
            f"more than the limit of {max_cells} cells"
        )
        super().__init__(message, cause=cause)
