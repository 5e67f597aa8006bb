"""
Modern Microsoft Office Converter Package
=========================================

Converters that render modern Microsoft Office formats (Office 2007 and
later) as HTML preview fragments. These formats use the Office Open XML
(OOXML) standard, which stores documents as ZIP archives containing XML
files.

Supported Formats
-----------------

.docx / .docm (Word 2007+):
    Paragraphs and tables of word/document.xml, with bold, italic and
    underline runs and explicit line breaks.

.xlsx / .xlsm (Excel 2007+):
    The first declared worksheet as a single table, with shared and inline
    strings resolved.

Common Archive Structure:
    document.docx/
    ├── [Content_Types].xml    # MIME types for parts
    ├── _rels/
    │   └── .rels              # Package relationships
    └── word/                   # (or xl/)
        ├── document.xml       # Main content
        └── _rels/             # Part relationships

Both converters read the archive with the in-memory ZIP reader in
officepreview.converters.util.zip_archive and parse XML parts with
xml.etree.ElementTree. No office library is needed at runtime.

See Also
--------
- officepreview.converters.data_types: Data structures for converted content
- OOXML specification: https://www.ecma-international.org/publications-and-standards/standards/ecma-376/
"""

from officepreview.converters.ms_modern.docx_converter import convert_docx_to_html
from officepreview.converters.ms_modern.xlsx_converter import convert_xlsx_to_html

__all__ = [
    "convert_docx_to_html",
    "convert_xlsx_to_html",
]
