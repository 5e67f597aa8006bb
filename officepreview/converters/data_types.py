from dataclasses import asdict, dataclass, field
from typing import Dict, List, Tuple

##########
# Word   #
##########


@dataclass
class DocxRun:
    text: str = ""
    bold: bool = False
    italic: bool = False
    underline: bool = False
    line_break_after: bool = False


@dataclass
class DocxParagraph:
    runs: List[DocxRun] = field(default_factory=list)


@dataclass
class DocxTable:
    # rows -> cells -> paragraphs of the cell
    rows: List[List[List[DocxParagraph]]] = field(default_factory=list)


@dataclass
class DocxHtmlResult:
    html: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


##########
# Excel  #
##########


@dataclass
class SheetGrid:
    """Sparse cell values addressed by zero-based (column, row)."""

    cells: Dict[Tuple[int, int], str] = field(default_factory=dict)
    max_column: int = -1
    max_row: int = -1

    def set(self, column: int, row: int, value: str) -> None:
        self.cells[(column, row)] = value
        self.max_column = max(self.max_column, column)
        self.max_row = max(self.max_row, row)

    def touch_row(self, row: int) -> None:
        self.max_row = max(self.max_row, row)

    @property
    def column_count(self) -> int:
        return self.max_column + 1

    @property
    def row_count(self) -> int:
        return self.max_row + 1

    def get_table(self) -> List[List[str]]:
        """Return the rectangular grid; every row has ``column_count`` cells."""
        return [
            [self.cells.get((column, row), "") for column in range(self.column_count)]
            for row in range(self.row_count)
        ]


@dataclass
class XlsxHtmlResult:
    sheet_name: str = ""
    html: str = ""

    def to_dict(self) -> dict:
        return asdict(self)
