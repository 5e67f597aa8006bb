import io
import logging
import unittest
import zipfile

import pytest
from openpyxl import Workbook

from officepreview import convert_xlsx_to_html
from officepreview.converters.ms_modern.xlsx_converter import (
    build_grid,
    column_label_to_index,
    parse_cell_reference,
)
from officepreview.converters.util.xml_utils import parse_xml
from officepreview.converters.util.zip_bomb import ZipBombLimits
from officepreview.exceptions import (
    MalformedXmlError,
    MissingPartError,
    MissingRelationshipError,
    NoWorksheetsError,
    SheetTooLargeError,
)

logger = logging.getLogger(__name__)

tc = unittest.TestCase()

S_NAMESPACE = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
R_NAMESPACE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
REL_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/relationships"
WORKSHEET_TYPE = f"{R_NAMESPACE}/worksheet"
SHARED_STRINGS_TYPE = f"{R_NAMESPACE}/sharedStrings"


def _workbook_xml(sheets: str = '<sheet name="Data" sheetId="1" r:id="rId1"/>') -> str:
    return (
        f'<workbook xmlns="{S_NAMESPACE}" xmlns:r="{R_NAMESPACE}">'
        f"<sheets>{sheets}</sheets></workbook>"
    )


def _rels_xml(relationships: str = None) -> str:
    if relationships is None:
        relationships = (
            f'<Relationship Id="rId1" Type="{WORKSHEET_TYPE}" Target="worksheets/sheet1.xml"/>'
        )
    return f'<Relationships xmlns="{REL_NAMESPACE}">{relationships}</Relationships>'


def _sheet_xml(rows: str) -> str:
    return f'<worksheet xmlns="{S_NAMESPACE}"><sheetData>{rows}</sheetData></worksheet>'


def _shared_strings_xml(items: str) -> str:
    return f'<sst xmlns="{S_NAMESPACE}">{items}</sst>'


def _make_xlsx(
    rows: str = "",
    shared_strings: str = None,
    workbook: str = None,
    rels: str = None,
    sheet_path: str = "xl/worksheets/sheet1.xml",
    extra_parts: dict[str, str] = None,
) -> bytes:
    parts = {
        "xl/workbook.xml": workbook if workbook is not None else _workbook_xml(),
        "xl/_rels/workbook.xml.rels": rels if rels is not None else _rels_xml(),
        sheet_path: _sheet_xml(rows),
    }
    if shared_strings is not None:
        parts["xl/sharedStrings.xml"] = shared_strings
    parts.update(extra_parts or {})

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, text in parts.items():
            if text is not None:
                zf.writestr(name, text)
    return buffer.getvalue()


def _cells(html: str) -> list[list[str]]:
    """Split the rendered table back into rows of cell strings."""
    body = html.split("<tbody>", 1)[1].split("</tbody>", 1)[0]
    rows = []
    for row in body.split("<tr>")[1:]:
        row = row.replace("</tr>", "")
        rows.append([cell.replace("</td>", "") for cell in row.split("<td>")[1:]])
    return rows


###################
# Cell references #
###################


def test_column_labels() -> None:
    tc.assertEqual(0, column_label_to_index("A"))
    tc.assertEqual(25, column_label_to_index("Z"))
    tc.assertEqual(26, column_label_to_index("AA"))
    tc.assertEqual(27, column_label_to_index("ab"))
    tc.assertEqual(16_383, column_label_to_index("XFD"))


def test_cell_references() -> None:
    tc.assertEqual((1, 2), parse_cell_reference("B3"))
    tc.assertEqual((0, 0), parse_cell_reference("A1"))
    tc.assertEqual((26, 9), parse_cell_reference("aa10"))
    tc.assertIsNone(parse_cell_reference(""))
    tc.assertIsNone(parse_cell_reference("12"))


########
# Grid #
########


def test_single_cell_grid() -> None:
    data = _make_xlsx('<row r="2"><c r="C2"><v>42</v></c></row>')

    result = convert_xlsx_to_html(data)

    tc.assertEqual("Data", result.sheet_name)
    tc.assertEqual(
        [["", "", ""], ["", "", "42"]],
        _cells(result.html),
    )


def test_grid_is_rectangular() -> None:
    data = _make_xlsx(
        '<row r="1"><c r="A1"><v>1</v></c></row>'
        '<row r="2"><c r="A2"><v>2</v></c><c r="D2"><v>3</v></c></row>'
        '<row r="3"><c r="B3"><v>4</v></c></row>'
    )

    rows = _cells(convert_xlsx_to_html(data).html)

    tc.assertEqual(
        [["1", "", "", ""], ["2", "", "", "3"], ["", "4", "", ""]],
        rows,
    )


def test_cells_without_reference_follow_the_previous_cell() -> None:
    sheet = parse_xml(
        _sheet_xml('<row><c><v>a</v></c><c><v>b</v></c></row><row><c r="B2"><v>c</v></c><c><v>d</v></c></row>'),
        "sheet.xml",
    )

    grid = build_grid(sheet, [])

    tc.assertEqual([["a", "b", ""], ["", "c", "d"]], grid.get_table())


def test_empty_sheet_renders_one_empty_cell() -> None:
    html = convert_xlsx_to_html(_make_xlsx("")).html

    tc.assertEqual(
        "<table><caption>Data</caption><tbody><tr><td></td></tr></tbody></table>",
        html,
    )


def test_styled_empty_cell_far_down_is_rejected() -> None:
    rows = (
        '<row r="1"><c r="A1"><v>1</v></c></row>'
        '<row r="1048576"><c r="Z1048576" s="1"/></row>'
    )
    with pytest.raises(SheetTooLargeError) as exc_info:
        convert_xlsx_to_html(_make_xlsx(rows))

    tc.assertEqual(1_048_576, exc_info.value.rows)
    tc.assertEqual(26, exc_info.value.columns)


def test_sheet_cell_limit_is_configurable() -> None:
    rows = '<row r="3"><c r="C3"><v>x</v></c></row>'  # 3 x 3 rectangle
    data = _make_xlsx(rows)

    with pytest.raises(SheetTooLargeError):
        convert_xlsx_to_html(data, limits=ZipBombLimits(max_sheet_cells=8))

    result = convert_xlsx_to_html(data, limits=ZipBombLimits(max_sheet_cells=9))
    tc.assertEqual(3, len(_cells(result.html)))


def test_empty_rows_count_toward_the_cell_limit() -> None:
    with pytest.raises(SheetTooLargeError):
        convert_xlsx_to_html(
            _make_xlsx('<row r="11"/>'), limits=ZipBombLimits(max_sheet_cells=10)
        )


##########
# Values #
##########


def test_shared_and_inline_strings() -> None:
    data = _make_xlsx(
        '<row r="1">'
        '<c r="A1" t="s"><v>0</v></c>'
        '<c r="B1" t="s"><v>1</v></c>'
        '<c r="C1" t="inlineStr"><is><t>inline</t></is></c>'
        '<c r="D1" t="inlineStr"><is><r><t>rich </t></r><r><t>text</t></r></is></c>'
        "</row>",
        shared_strings=_shared_strings_xml(
            "<si><t>plain &amp; simple</t></si>"
            "<si><r><t>Fancy</t></r><r><t> Words</t></r><rPh><t>phonetic</t></rPh></si>"
        ),
    )

    rows = _cells(convert_xlsx_to_html(data).html)

    tc.assertEqual([["plain &amp; simple", "Fancy Words", "inline", "rich text"]], rows)


def test_shared_string_index_out_of_range_is_empty() -> None:
    data = _make_xlsx(
        '<row r="1"><c r="A1" t="s"><v>5</v></c><c r="B1" t="s"><v>x</v></c>'
        '<c r="C1" t="s"><v>0</v></c></row>',
        shared_strings=_shared_strings_xml("<si><t>only</t></si>"),
    )

    rows = _cells(convert_xlsx_to_html(data).html)

    tc.assertEqual([["", "", "only"]], rows)


def test_shared_strings_are_optional() -> None:
    data = _make_xlsx('<row r="1"><c r="A1" t="s"><v>0</v></c><c r="B1"><v>7</v></c></row>')

    rows = _cells(convert_xlsx_to_html(data).html)

    tc.assertEqual([["", "7"]], rows)


def test_raw_values_are_passed_through() -> None:
    data = _make_xlsx(
        '<row r="1">'
        '<c r="A1"><v>3.14159</v></c>'
        '<c r="B1"><f>A1*2</f><v>6.28318</v></c>'
        '<c r="C1" t="b"><v>1</v></c>'
        '<c r="D1" t="str"><v>a&lt;b</v></c>'
        '<c r="E1" s="1"/>'
        "</row>"
    )

    rows = _cells(convert_xlsx_to_html(data).html)

    tc.assertEqual([["3.14159", "6.28318", "1", "a&lt;b", ""]], rows)


def test_sheet_name_is_escaped_and_defaults() -> None:
    data = _make_xlsx(workbook=_workbook_xml('<sheet name="R&amp;D" sheetId="1" r:id="rId1"/>'))
    result = convert_xlsx_to_html(data)
    tc.assertEqual("R&D", result.sheet_name)
    tc.assertIn("<caption>R&amp;D</caption>", result.html)

    data = _make_xlsx(workbook=_workbook_xml('<sheet sheetId="1" r:id="rId1"/>'))
    tc.assertEqual("Sheet1", convert_xlsx_to_html(data).sheet_name)


#################
# Relationships #
#################


def test_only_the_first_sheet_is_rendered() -> None:
    data = _make_xlsx(
        '<row r="1"><c r="A1"><v>first</v></c></row>',
        workbook=_workbook_xml(
            '<sheet name="One" sheetId="1" r:id="rId1"/>'
            '<sheet name="Two" sheetId="2" r:id="rId2"/>'
        ),
        rels=_rels_xml(
            f'<Relationship Id="rId2" Type="{WORKSHEET_TYPE}" Target="worksheets/sheet2.xml"/>'
            f'<Relationship Id="rId1" Type="{WORKSHEET_TYPE}" Target="worksheets/sheet1.xml"/>'
        ),
        extra_parts={
            "xl/worksheets/sheet2.xml": _sheet_xml('<row r="1"><c r="A1"><v>second</v></c></row>')
        },
    )

    result = convert_xlsx_to_html(data)

    tc.assertEqual("One", result.sheet_name)
    tc.assertIn("first", result.html)
    tc.assertNotIn("second", result.html)


def test_absolute_relationship_target() -> None:
    rels = _rels_xml(
        f'<Relationship Id="rId1" Type="{WORKSHEET_TYPE}" Target="/xl/worksheets/sheet1.xml"/>'
    )
    data = _make_xlsx('<row r="1"><c r="A1"><v>abs</v></c></row>', rels=rels)

    tc.assertIn("abs", convert_xlsx_to_html(data).html)


def test_absolute_target_rooted_at_workbook_folder() -> None:
    rels = _rels_xml(
        f'<Relationship Id="rId1" Type="{WORKSHEET_TYPE}" Target="/worksheets/sheet1.xml"/>'
    )
    data = _make_xlsx('<row r="1"><c r="A1"><v>rooted</v></c></row>', rels=rels)

    tc.assertIn("rooted", convert_xlsx_to_html(data).html)


def test_relative_target_with_parent_segment() -> None:
    rels = _rels_xml(
        f'<Relationship Id="rId1" Type="{WORKSHEET_TYPE}" Target="../xl/sheets/data.xml"/>'
    )
    data = _make_xlsx(
        '<row r="1"><c r="A1"><v>moved</v></c></row>',
        rels=rels,
        sheet_path="xl/sheets/data.xml",
    )

    tc.assertIn("moved", convert_xlsx_to_html(data).html)


def test_shared_strings_located_through_relationship() -> None:
    rels = _rels_xml(
        f'<Relationship Id="rId1" Type="{WORKSHEET_TYPE}" Target="worksheets/sheet1.xml"/>'
        f'<Relationship Id="rId9" Type="{SHARED_STRINGS_TYPE}" Target="strings/table.xml"/>'
    )
    data = _make_xlsx(
        '<row r="1"><c r="A1" t="s"><v>0</v></c></row>',
        rels=rels,
        extra_parts={"xl/strings/table.xml": _shared_strings_xml("<si><t>related</t></si>")},
    )

    tc.assertEqual([["related"]], _cells(convert_xlsx_to_html(data).html))


##########
# Errors #
##########


def test_no_worksheets() -> None:
    data = _make_xlsx(workbook=_workbook_xml(""))

    with pytest.raises(NoWorksheetsError):
        convert_xlsx_to_html(data)


def test_missing_relationship() -> None:
    rels = _rels_xml(
        f'<Relationship Id="rId7" Type="{WORKSHEET_TYPE}" Target="worksheets/sheet1.xml"/>'
    )

    with pytest.raises(MissingRelationshipError):
        convert_xlsx_to_html(_make_xlsx(rels=rels))


def test_missing_relationship_id() -> None:
    data = _make_xlsx(workbook=_workbook_xml('<sheet name="Data" sheetId="1"/>'))

    with pytest.raises(MissingRelationshipError):
        convert_xlsx_to_html(data)


def test_missing_worksheet_part() -> None:
    data = _make_xlsx(sheet_path="xl/worksheets/other.xml")

    with pytest.raises(MissingPartError) as exc_info:
        convert_xlsx_to_html(data)
    tc.assertEqual("xl/worksheets/sheet1.xml", exc_info.value.part)


def test_missing_workbook_part() -> None:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("[Content_Types].xml", "<Types/>")

    with pytest.raises(MissingPartError):
        convert_xlsx_to_html(buffer.getvalue())


def test_malformed_workbook() -> None:
    with pytest.raises(MalformedXmlError):
        convert_xlsx_to_html(_make_xlsx(workbook="<workbook"))


def test_malformed_shared_strings_is_an_error() -> None:
    data = _make_xlsx('<row r="1"><c r="A1"><v>1</v></c></row>', shared_strings="<sst><si>")

    with pytest.raises(MalformedXmlError) as exc_info:
        convert_xlsx_to_html(data)
    tc.assertEqual("xl/sharedStrings.xml", exc_info.value.part)


############
# openpyxl #
############


def test_openpyxl_workbook() -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Report"
    sheet["A1"] = "Name"
    sheet["B1"] = "Amount"
    sheet["A2"] = "Coffee <large>"
    sheet["B2"] = 42
    sheet["C3"] = "Total"
    other = workbook.create_sheet("Hidden")
    other["A1"] = "never shown"

    buffer = io.BytesIO()
    workbook.save(buffer)

    result = convert_xlsx_to_html(buffer.getvalue())

    tc.assertEqual("Report", result.sheet_name)
    tc.assertEqual(
        [
            ["Name", "Amount", ""],
            ["Coffee &lt;large&gt;", "42", ""],
            ["", "", "Total"],
        ],
        _cells(result.html),
    )
    tc.assertNotIn("never shown", result.html)
