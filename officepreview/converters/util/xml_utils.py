from typing import Optional
from xml.etree import ElementTree as ET

from officepreview.converters.util.zip_archive import ZipArchive
from officepreview.exceptions import MalformedXmlError, MissingPartError


def parse_xml(text: str, part: str) -> ET.Element:
    """Parse ``text`` and return the root element of ``part``."""
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise MalformedXmlError(part, cause=e) from e


def read_xml_root(archive: ZipArchive, part: str) -> ET.Element:
    """Read a required part; raise MissingPartError if it is absent."""
    text = archive.get_text(part)
    if text is None:
        raise MissingPartError(part)
    return parse_xml(text, part)


def read_optional_xml_root(archive: ZipArchive, part: str) -> Optional[ET.Element]:
    """Read an optional part; None only if the part is absent."""
    text = archive.get_text(part)
    if text is None:
        return None
    return parse_xml(text, part)


def local_name(element: ET.Element) -> str:
    return element.tag.split("}")[-1]
