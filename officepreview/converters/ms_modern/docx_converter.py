"""
DOCX to HTML Converter
======================

Converts the main body of a Microsoft Word .docx file (Office Open XML,
Word 2007 and later) into a small semantic HTML fragment for previews.

File Format Background
----------------------
The .docx format is a ZIP archive containing XML files following the Office
Open XML (OOXML) standard. Only one part is needed for the preview:

    word/document.xml: Main document body (paragraphs, tables)

XML Namespaces:
    - w: http://schemas.openxmlformats.org/wordprocessingml/2006/main

Rendered Content
----------------
The direct children of ``w:body`` are walked in document order:

    - w:p   -> <p>, runs rendered with <strong>/<em>/underline span
    - w:tbl -> <table>, one <tr> per w:tr and one <td> per w:tc
    - everything else (section properties, bookmarks, ...) is skipped

Formatting wrappers always nest in the same order, bold outermost, then
italic, then underline:

    <strong><em><span style="text-decoration: underline;">text</span></em></strong>

A paragraph without text renders as ``&nbsp;`` so blank lines keep their
height. A body without any paragraph or table renders a single placeholder
paragraph, so callers can tell "parsed but empty" from "not loaded".

Known Limitations
-----------------
- Styles, numbering, images, headers and footers are not rendered
- Merged cells are rendered as plain cells
- Password-protected files raise FileEncryptedError

Usage
-----
    >>> from officepreview.converters.ms_modern.docx_converter import convert_docx_to_html
    >>>
    >>> with open("document.docx", "rb") as f:
    ...     result = convert_docx_to_html(f.read())
    >>> print(result.html)
"""

import logging
from typing import List, Optional, Union
from xml.etree import ElementTree as ET

from officepreview.converters.data_types import (
    DocxHtmlResult,
    DocxParagraph,
    DocxRun,
    DocxTable,
)
from officepreview.converters.html_utils import (
    COMPACT_PARAGRAPH_STYLE,
    LINE_BREAK,
    NBSP,
    PARAGRAPH_STYLE,
    UNDERLINE_STYLE,
    escape_html,
    join,
    wrap,
)
from officepreview.converters.util.encryption import is_ooxml_encrypted
from officepreview.converters.util.xml_utils import local_name, read_xml_root
from officepreview.converters.util.zip_archive import BufferLike, ZipArchive, as_bytes
from officepreview.converters.util.zip_bomb import DEFAULT_ZIP_BOMB_LIMITS, ZipBombLimits
from officepreview.exceptions import FileEncryptedError

logger = logging.getLogger(__name__)

DOCUMENT_PART = "word/document.xml"

W_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"

EMPTY_DOCUMENT_HTML = '<p style="margin: 0;">(Document contained no visible text)</p>'

# w:val values that switch a toggle property off
_FALSE_VALUES = {"0", "false", "off"}


def _is_toggle_on(properties: Optional[ET.Element], tag: str) -> bool:
    if properties is None:
        return False
    element = properties.find(f"{W_NS}{tag}")
    if element is None:
        return False
    value = element.get(f"{W_NS}val")
    if value is None:
        return True
    if tag == "u":
        return value != "none"
    return value.lower() not in _FALSE_VALUES


def _parse_run(run_element: ET.Element) -> DocxRun:
    text = "".join(t.text or "" for t in run_element.iter(f"{W_NS}t"))
    properties = run_element.find(f"{W_NS}rPr")
    return DocxRun(
        text=text,
        bold=_is_toggle_on(properties, "b"),
        italic=_is_toggle_on(properties, "i"),
        underline=_is_toggle_on(properties, "u"),
        line_break_after=run_element.find(f".//{W_NS}br") is not None,
    )


def _parse_paragraph(p_element: ET.Element) -> DocxParagraph:
    # Runs nested in hyperlinks, smart tags etc. belong to the paragraph too
    return DocxParagraph(runs=[_parse_run(r) for r in p_element.iter(f"{W_NS}r")])


def _parse_table(tbl_element: ET.Element) -> DocxTable:
    table = DocxTable()
    for row_element in tbl_element.findall(f"{W_NS}tr"):
        row = []
        for cell_element in row_element.findall(f"{W_NS}tc"):
            row.append([_parse_paragraph(p) for p in cell_element.iter(f"{W_NS}p")])
        table.rows.append(row)
    return table


def parse_body(body: Optional[ET.Element]) -> List[Union[DocxParagraph, DocxTable]]:
    """Return the paragraphs and tables of ``w:body`` in document order."""
    blocks: List[Union[DocxParagraph, DocxTable]] = []
    if body is None:
        return blocks

    for element in body:
        tag = local_name(element)
        if tag == "p":
            blocks.append(_parse_paragraph(element))
        elif tag == "tbl":
            blocks.append(_parse_table(element))
    return blocks


def render_run(run: DocxRun) -> str:
    content = ""
    if run.text:
        content = escape_html(run.text)
        if run.bold:
            content = wrap("strong", content)
        if run.italic:
            content = wrap("em", content)
        if run.underline:
            content = wrap("span", content, style=UNDERLINE_STYLE)
    if run.line_break_after:
        content += LINE_BREAK
    return content


def render_paragraph(paragraph: DocxParagraph, compact: bool = False) -> str:
    content = join(render_run(run) for run in paragraph.runs)
    style = COMPACT_PARAGRAPH_STYLE if compact else PARAGRAPH_STYLE
    return wrap("p", content or NBSP, style=style)


def render_table(table: DocxTable) -> str:
    rows = []
    for row in table.rows:
        if not row:
            continue
        cells = []
        for paragraphs in row:
            content = join(render_paragraph(p, compact=True) for p in paragraphs)
            cells.append(wrap("td", content or NBSP))
        rows.append(wrap("tr", join(cells)))

    if not rows:
        return ""
    return wrap("table", wrap("tbody", join(rows)))


def render_blocks(blocks: List[Union[DocxParagraph, DocxTable]]) -> str:
    parts = []
    for block in blocks:
        if isinstance(block, DocxTable):
            table_html = render_table(block)
            if table_html:
                parts.append(table_html)
        else:
            parts.append(render_paragraph(block))

    if not parts:
        return EMPTY_DOCUMENT_HTML
    return join(parts)


def convert_docx_to_html(
    data: BufferLike,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
) -> DocxHtmlResult:
    """
    Convert the body of a Word .docx package into an HTML fragment.

    Args:
        data: Complete bytes of the .docx file.
        limits: ZIP-bomb limits applied while opening the archive.

    Returns:
        DocxHtmlResult with the HTML fragment. The fragment is never empty.

    Raises:
        FileEncryptedError: The file is a password-protected package
        NotAZipError, CorruptCentralDirectoryError, ...: The archive is invalid
        MissingPartError: word/document.xml is absent
        MalformedXmlError: word/document.xml is not well-formed XML
    """
    data = as_bytes(data)
    if is_ooxml_encrypted(data):
        raise FileEncryptedError("DOCX is encrypted or password-protected")

    archive = ZipArchive(data, limits=limits, source="docx")
    root = read_xml_root(archive, DOCUMENT_PART)

    blocks = parse_body(root.find(f"{W_NS}body"))
    html = render_blocks(blocks)

    logger.info(
        "Converted DOCX: %d paragraphs, %d tables",
        sum(1 for block in blocks if isinstance(block, DocxParagraph)),
        sum(1 for block in blocks if isinstance(block, DocxTable)),
    )
    return DocxHtmlResult(html=html)
