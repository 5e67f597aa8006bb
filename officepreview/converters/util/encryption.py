import io

import olefile

from officepreview.exceptions import NotAZipError

# Streams Office writes into the OLE wrapper of an encrypted OOXML package
_ENCRYPTION_STREAMS = ("EncryptionInfo", "EncryptedPackage", "DataSpaces")


def _has_ole_encryption_stream(ole: olefile.OleFileIO) -> bool:
    for stream in _ENCRYPTION_STREAMS:
        if ole.exists(stream):
            return True
    return False


def is_ooxml_encrypted(data: bytes) -> bool:
    """Check whether ``data`` is a password-protected OOXML package.

    Encrypted .docx/.xlsx files are not ZIP archives at all but OLE compound
    files holding the encrypted package as a stream.

    :raises NotAZipError: The data carries the OLE signature but is not a
        readable compound file.
    """
    file_like = io.BytesIO(data)
    if not olefile.isOleFile(file_like):
        return False
    file_like.seek(0)
    try:
        with olefile.OleFileIO(file_like) as ole:
            return _has_ole_encryption_stream(ole)
    except Exception as exc:
        raise NotAZipError(
            "Data starts with an OLE signature but is not a readable compound file",
            cause=exc,
        ) from exc
