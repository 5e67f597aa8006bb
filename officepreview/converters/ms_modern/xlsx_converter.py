"""
XLSX to HTML Converter
======================

Renders the first worksheet of a Microsoft Excel .xlsx file (Office Open XML,
Excel 2007 and later) as a single HTML table.

File Format Background
----------------------
The .xlsx format is a ZIP archive containing XML files following the Office
Open XML (OOXML) standard. The parts used here are:

    xl/workbook.xml: Sheet list (name and relationship id per sheet)
    xl/_rels/workbook.xml.rels: Relationship id -> part path
    xl/worksheets/sheet1.xml, ...: Cell data of one sheet
    xl/sharedStrings.xml: Shared string table (optional)

XML Namespaces:
    - spreadsheetml: http://schemas.openxmlformats.org/spreadsheetml/2006/main
    - r: http://schemas.openxmlformats.org/officeDocument/2006/relationships
    - rel: http://schemas.openxmlformats.org/package/2006/relationships

Cell Values
-----------
Cells are placed by their reference ("B3" -> column 1, row 2). The display
value depends on the cell type attribute ``t``:

    - "s": index into the shared string table (out of range -> "")
    - "inlineStr": concatenation of the inline text runs
    - anything else: the raw ``v`` text, numbers and formula results
      are passed through without formatting

All rows are padded to the widest row so the table stays rectangular.

Known Limitations
-----------------
- Only the first declared sheet is rendered
- Number formats, dates and styles are not applied
- Merged cells are rendered as plain cells

Usage
-----
    >>> from officepreview.converters.ms_modern.xlsx_converter import convert_xlsx_to_html
    >>>
    >>> with open("data.xlsx", "rb") as f:
    ...     result = convert_xlsx_to_html(f.read())
    >>> print(result.sheet_name)
    >>> print(result.html)
"""

import logging
import posixpath
import re
from typing import List, Optional, Tuple
from xml.etree import ElementTree as ET

from officepreview.converters.data_types import SheetGrid, XlsxHtmlResult
from officepreview.converters.html_utils import escape_html, join, wrap
from officepreview.converters.util.encryption import is_ooxml_encrypted
from officepreview.converters.util.xml_utils import (
    read_optional_xml_root,
    read_xml_root,
)
from officepreview.converters.util.zip_archive import BufferLike, ZipArchive, as_bytes
from officepreview.converters.util.zip_bomb import DEFAULT_ZIP_BOMB_LIMITS, ZipBombLimits
from officepreview.exceptions import (
    FileEncryptedError,
    MissingPartError,
    MissingRelationshipError,
    NoWorksheetsError,
    SheetTooLargeError,
)

logger = logging.getLogger(__name__)

WORKBOOK_ROOT = "xl"
WORKBOOK_PART = "xl/workbook.xml"
WORKBOOK_RELS_PART = "xl/_rels/workbook.xml.rels"
SHARED_STRINGS_PART = "xl/sharedStrings.xml"

DEFAULT_SHEET_NAME = "Sheet1"

S_NS = "{http://schemas.openxmlformats.org/spreadsheetml/2006/main}"
R_NS = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}"
REL_NS = "{http://schemas.openxmlformats.org/package/2006/relationships}"

SHARED_STRINGS_REL_TYPE_SUFFIX = "/sharedStrings"

# Excel's sheet dimensions (XFD1048576)
MAX_COLUMNS = 16_384
MAX_ROWS = 1_048_576

_CELL_REFERENCE = re.compile(r"([A-Z]+)(\d+)", re.IGNORECASE)


def column_label_to_index(label: str) -> int:
    """Convert column letters to a zero-based index (A=0, Z=25, AA=26)."""
    index = 0
    for char in label.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def parse_cell_reference(reference: str) -> Optional[Tuple[int, int]]:
    """Parse "B3" into the zero-based (column, row) pair (1, 2).

    Returns None if the reference does not contain a cell address.
    """
    match = _CELL_REFERENCE.search(reference)
    if not match:
        return None
    column = column_label_to_index(match.group(1))
    row = max(0, int(match.group(2)) - 1)
    return column, row


def _collect_text(element: ET.Element) -> str:
    """Concatenate the ``t`` texts below ``element``, skipping phonetic runs."""
    parts = []
    for child in element:
        tag = child.tag
        if tag == f"{S_NS}t":
            parts.append(child.text or "")
        elif tag == f"{S_NS}r":
            parts.extend(t.text or "" for t in child.findall(f"{S_NS}t"))
    return "".join(parts)


def parse_shared_strings(root: Optional[ET.Element]) -> List[str]:
    if root is None:
        return []
    return [_collect_text(si) for si in root.findall(f"{S_NS}si")]


class _WorkbookContext:
    """
    Resolves the parts needed to render the first worksheet.

    Opens the workbook and its relationships once; the worksheet and shared
    string parts are looked up through the relationships.
    """

    def __init__(self, archive: ZipArchive):
        self.archive = archive
        self.workbook_root = read_xml_root(archive, WORKBOOK_PART)
        self._relationships: Optional[dict[str, dict]] = None

    @property
    def relationships(self) -> dict[str, dict]:
        if self._relationships is None:
            rels_root = read_xml_root(self.archive, WORKBOOK_RELS_PART)
            self._relationships = {}
            for rel in rels_root.iter(f"{REL_NS}Relationship"):
                self._relationships[rel.get("Id") or ""] = {
                    "type": rel.get("Type") or "",
                    "target": rel.get("Target") or "",
                }
        return self._relationships

    def first_sheet(self) -> Tuple[str, str]:
        """Return name and relationship id of the first declared sheet."""
        sheet = self.workbook_root.find(f".//{S_NS}sheet")
        if sheet is None:
            raise NoWorksheetsError()
        name = sheet.get("name") or DEFAULT_SHEET_NAME
        rel_id = sheet.get(f"{R_NS}id")
        if not rel_id:
            raise MissingRelationshipError(
                f"Worksheet {name!r} has no relationship identifier"
            )
        return name, rel_id

    def resolve_target(self, target: str) -> str:
        """Map a relationship target to an archive entry name."""
        if target.startswith("/"):
            # Package-rooted; some producers write it relative to xl/ anyway
            path = posixpath.normpath(target.lstrip("/"))
            if self.archive.has(path):
                return path
            return posixpath.normpath(posixpath.join(WORKBOOK_ROOT, path))
        return posixpath.normpath(posixpath.join(WORKBOOK_ROOT, target))

    def worksheet_path(self, rel_id: str) -> str:
        relationship = self.relationships.get(rel_id)
        if relationship is None:
            raise MissingRelationshipError(
                f"Worksheet relationship {rel_id!r} not found"
            )
        if not relationship["target"]:
            raise MissingRelationshipError(
                f"Worksheet relationship {rel_id!r} has no target"
            )
        return self.resolve_target(relationship["target"])

    def shared_strings_path(self) -> str:
        for relationship in self.relationships.values():
            if relationship["type"].endswith(SHARED_STRINGS_REL_TYPE_SUFFIX):
                if relationship["target"]:
                    return self.resolve_target(relationship["target"])
        return SHARED_STRINGS_PART


def _get_cell_value(cell: ET.Element, shared_strings: List[str]) -> str:
    cell_type = cell.get("t")

    if cell_type == "s":
        value_node = cell.find(f"{S_NS}v")
        if value_node is None:
            return ""
        try:
            index = int((value_node.text or "").strip())
        except ValueError:
            return ""
        if 0 <= index < len(shared_strings):
            return escape_html(shared_strings[index])
        return ""

    if cell_type == "inlineStr":
        inline = cell.find(f"{S_NS}is")
        return escape_html(_collect_text(inline) if inline is not None else "")

    value_node = cell.find(f"{S_NS}v")
    raw_value = value_node.text if value_node is not None else None
    return escape_html(raw_value or "")


def build_grid(sheet_root: ET.Element, shared_strings: List[str]) -> SheetGrid:
    """Place every cell of the worksheet at its (column, row) coordinate."""
    grid = SheetGrid()
    row_index = -1
    for row in sheet_root.iter(f"{S_NS}row"):
        try:
            row_index = max(0, int(row.get("r")) - 1)
        except (TypeError, ValueError):
            row_index += 1
        if row_index >= MAX_ROWS:
            logger.warning("Skipping worksheet row %d beyond the sheet limit", row_index)
            continue
        grid.touch_row(row_index)

        column_index = -1
        for cell in row.findall(f"{S_NS}c"):
            coordinates = parse_cell_reference(cell.get("r") or "")
            if coordinates is None:
                column_index += 1
                cell_row = row_index
            else:
                column_index, cell_row = coordinates
            if column_index >= MAX_COLUMNS or cell_row >= MAX_ROWS:
                logger.warning("Skipping cell %r beyond the sheet limits", cell.get("r"))
                continue
            grid.set(column_index, cell_row, _get_cell_value(cell, shared_strings))
    return grid


def check_grid_size(grid: SheetGrid, max_cells: int) -> None:
    """Reject grids whose rendered rectangle would exceed ``max_cells``."""
    rows = grid.row_count
    columns = max(grid.column_count, 1)
    if rows * columns > max_cells:
        raise SheetTooLargeError(rows, columns, max_cells)


def render_grid(grid: SheetGrid, sheet_name: str) -> str:
    rows = grid.get_table() or [[]]
    column_count = max(grid.column_count, 1)

    table_rows = []
    for cells in rows:
        cells = cells + [""] * (column_count - len(cells))
        table_rows.append(wrap("tr", join(wrap("td", value) for value in cells)))

    caption = wrap("caption", escape_html(sheet_name))
    return wrap("table", caption + wrap("tbody", join(table_rows)))


def convert_xlsx_to_html(
    data: BufferLike,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
) -> XlsxHtmlResult:
    """
    Convert the first worksheet of an Excel .xlsx package into an HTML table.

    Args:
        data: Complete bytes of the .xlsx file.
        limits: ZIP-bomb limits applied while opening the archive, and the
            cell limit applied to the rendered sheet.

    Returns:
        XlsxHtmlResult with the sheet name and the HTML table.

    Raises:
        FileEncryptedError: The file is a password-protected package
        NotAZipError, CorruptCentralDirectoryError, ...: The archive is invalid
        MissingPartError: Workbook, relationships or worksheet part is absent
        MissingRelationshipError: The sheet's relationship cannot be resolved
        NoWorksheetsError: The workbook declares no sheet
        SheetTooLargeError: The sheet spans more cells than limits allow
        MalformedXmlError: A required (or present optional) part is not valid XML
    """
    data = as_bytes(data)
    if is_ooxml_encrypted(data):
        raise FileEncryptedError("XLSX is encrypted or password-protected")

    archive = ZipArchive(data, limits=limits, source="xlsx")
    ctx = _WorkbookContext(archive)

    sheet_name, rel_id = ctx.first_sheet()
    sheet_path = ctx.worksheet_path(rel_id)
    logger.debug("Resolved worksheet %r to %s", sheet_name, sheet_path)

    if not archive.has(sheet_path):
        raise MissingPartError(sheet_path, f"Worksheet XML not found: {sheet_path}")
    sheet_root = read_xml_root(archive, sheet_path)

    shared_strings = parse_shared_strings(
        read_optional_xml_root(archive, ctx.shared_strings_path())
    )

    grid = build_grid(sheet_root, shared_strings)
    check_grid_size(grid, limits.max_sheet_cells)
    html = render_grid(grid, sheet_name)

    logger.info(
        "Converted XLSX sheet %r: %d rows, %d columns",
        sheet_name,
        grid.row_count,
        grid.column_count,
    )
    return XlsxHtmlResult(sheet_name=sheet_name, html=html)
