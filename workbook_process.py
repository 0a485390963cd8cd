import logging
import time
import uuid
from io import BytesIO
from typing import Any, List, Tuple

import pandas as pd
from pydantic import BaseModel

from utils.result import Result

logger = logging.getLogger(__name__)


class LogContext:
    """Context manager for tracking and logging pipeline stages"""
    def __init__(self, operation_name: str, **kwargs):
        self.operation_name = operation_name
        self.start_time = None
        self.request_id = kwargs.get('request_id', str(uuid.uuid4())[:8])
        self.extra = kwargs

    def __enter__(self):
        self.start_time = time.time()
        logger.info(f"Starting {self.operation_name}", extra={"request_id": self.request_id, **self.extra})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        if exc_type:
            logger.error(
                f"Failed {self.operation_name} in {duration:.2f}s: {str(exc_val)}",
                extra={"request_id": self.request_id, "duration": duration, **self.extra},
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            logger.info(
                f"Completed {self.operation_name} in {duration:.2f}s",
                extra={"request_id": self.request_id, "duration": duration, **self.extra}
            )


class SheetLayout(BaseModel):
    """
    Fixed cell offsets of the source-to-template copy.

    All indexes are zero-based. Row ranges are (start, stop) with an
    exclusive stop.

    Attributes:
        section_one_rows: Source rows read for Section 1
        section_one_column: Source column read for Section 1 (C)
        section_two_rows: Source rows read for Section 2
        section_two_columns: Source columns read for Section 2 (B, C, D)
        template_min_rows: Row count the template is padded to before pasting
        section_one_dest_row: First template row receiving Section 1
        section_one_dest_column: Template column receiving Section 1 (D)
        section_two_dest_row: First template row receiving Section 2
        section_two_dest_columns: Template columns receiving Section 2 (C, D, E)
        section_two_max_rows: Most Section 2 rows ever pasted
    """
    section_one_rows: Tuple[int, int] = (1, 9)
    section_one_column: int = 2
    section_two_rows: Tuple[int, int] = (12, 25)
    section_two_columns: Tuple[int, int, int] = (1, 2, 3)
    template_min_rows: int = 63
    section_one_dest_row: int = 39
    section_one_dest_column: int = 3
    section_two_dest_row: int = 50
    section_two_dest_columns: Tuple[int, int, int] = (2, 3, 4)
    section_two_max_rows: int = 13


DEFAULT_LAYOUT = SheetLayout()


class SectionTwoRow(BaseModel):
    """One Section 2 row: the source values of columns B, C and D."""
    B: Any = ""
    C: Any = ""
    D: Any = ""


class ExtractedSections(BaseModel):
    """
    Values lifted out of the source sheet.

    Attributes:
        section_one: Column C values of the Section 1 rows
        section_two: Columns B, C, D of the Section 2 rows
    """
    section_one: List[Any]
    section_two: List[SectionTwoRow]


def _cell(row: List[Any], column: int) -> Any:
    if column >= len(row):
        return ""
    value = row[column]
    return "" if value is None else value


def _row(rows: List[List[Any]], index: int) -> List[Any]:
    if index < len(rows) and rows[index] is not None:
        return rows[index]
    return []


def pad_row(row: List[Any], length: int) -> List[Any]:
    """Append empty cells to ``row`` in place until it holds ``length`` cells."""
    while len(row) < length:
        row.append("")
    return row


def extract_sections(rows: List[List[Any]], layout: SheetLayout = DEFAULT_LAYOUT) -> ExtractedSections:
    """
    Read the two fixed ranges out of the source sheet rows.

    Rows or cells past the end of the sheet read as empty strings.

    Args:
        rows: Source sheet as a list of rows
        layout: Offsets to read from

    Returns:
        ExtractedSections with 8 Section 1 values and 13 Section 2 rows
    """
    start, stop = layout.section_one_rows
    section_one = [_cell(_row(rows, i), layout.section_one_column) for i in range(start, stop)]

    col_b, col_c, col_d = layout.section_two_columns
    start, stop = layout.section_two_rows
    section_two = []
    for i in range(start, stop):
        row = _row(rows, i)
        section_two.append(SectionTwoRow(B=_cell(row, col_b), C=_cell(row, col_c), D=_cell(row, col_d)))

    return ExtractedSections(section_one=section_one, section_two=section_two)


def paste_sections(
    rows: List[List[Any]],
    sections: ExtractedSections,
    layout: SheetLayout = DEFAULT_LAYOUT
) -> List[List[Any]]:
    """
    Write extracted sections into the template rows, in place.

    The template is first padded to ``layout.template_min_rows`` rows, and
    every destination row is widened with empty cells before it is written,
    so a template of any length (including an empty one) is accepted.

    Args:
        rows: Template sheet as a list of rows
        sections: Values produced by extract_sections
        layout: Offsets to write to

    Returns:
        The same list, mutated
    """
    while len(rows) < layout.template_min_rows:
        rows.append([])

    for offset, value in enumerate(sections.section_one):
        dest = layout.section_one_dest_row + offset
        while dest >= len(rows):
            rows.append([])
        if rows[dest] is None:
            rows[dest] = []
        pad_row(rows[dest], layout.section_one_dest_column + 1)
        rows[dest][layout.section_one_dest_column] = value

    dest_b, dest_c, dest_d = layout.section_two_dest_columns
    width = max(layout.section_two_dest_columns) + 1
    for offset, triple in enumerate(sections.section_two[:layout.section_two_max_rows]):
        dest = layout.section_two_dest_row + offset
        while dest >= len(rows):
            rows.append([])
        if rows[dest] is None:
            rows[dest] = []
        pad_row(rows[dest], width)
        rows[dest][dest_b] = triple.B
        rows[dest][dest_c] = triple.C
        rows[dest][dest_d] = triple.D

    return rows


def read_first_sheet(content: bytes) -> Tuple[str, List[List[Any]]]:
    """
    Decode an xlsx buffer and return the first sheet's name and rows.

    Cells are read without a header row and without NA interpretation, so a
    cell holding "NA" stays "NA". Empty cells come back as "".

    Raises:
        Exception: whatever the xlsx reader raises for a malformed buffer
    """
    with pd.ExcelFile(BytesIO(content), engine="openpyxl") as workbook:
        sheet_name = workbook.sheet_names[0]
        df = workbook.parse(sheet_name, header=None, dtype=object, keep_default_na=False)

    df = df.astype(object).where(pd.notna(df), "")
    return sheet_name, df.values.tolist()


def write_workbook(rows: List[List[Any]], sheet_name: str) -> bytes:
    """
    Serialize rows into a single-sheet xlsx workbook.

    Text cells are always stored as text: a value such as "=SUM(A1)" read
    from an uploaded string cell is written back as that string, not as a
    formula.

    Args:
        rows: Sheet rows, possibly ragged
        sheet_name: Name given to the only sheet

    Returns:
        The workbook file as bytes
    """
    buffer = BytesIO()
    df = pd.DataFrame(rows)
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        sheet = writer.sheets[sheet_name]
        for row in sheet.iter_rows():
            for cell in row:
                # openpyxl turns any str starting with "=" into a formula
                if cell.data_type == "f" and isinstance(cell.value, str):
                    cell.data_type = "s"
    return buffer.getvalue()


class WorkbookProcessor:
    """
    Copies the fixed source ranges into a template workbook.

    This class contains methods to:
    - Decode the uploaded source and template workbooks
    - Extract Section 1 and Section 2 from the source
    - Paste them into the template
    - Serialize the filled template
    """

    @staticmethod
    def process_files(
        source_content: bytes,
        template_content: bytes,
        layout: SheetLayout = DEFAULT_LAYOUT
    ) -> Result[bytes]:
        """
        Run the extract-then-paste pipeline on two uploaded workbooks.

        Args:
            source_content: Raw bytes of the source workbook
            template_content: Raw bytes of the template workbook
            layout: Offsets of the copy

        Returns:
            Result[bytes]: the filled workbook, or a processing failure
        """
        request_id = str(uuid.uuid4())[:8]
        log_context = {
            "request_id": request_id,
            "source_size": len(source_content),
            "template_size": len(template_content)
        }

        logger.info("Processing workbook pair", extra=log_context)

        try:
            with LogContext("source decoding", **log_context):
                _, source_rows = read_first_sheet(source_content)

            with LogContext("template decoding", **log_context):
                sheet_name, template_rows = read_first_sheet(template_content)

            log_context["source_rows"] = len(source_rows)
            log_context["template_rows"] = len(template_rows)

            with LogContext("section extraction", **log_context):
                sections = extract_sections(source_rows, layout)

            with LogContext("section placement", **log_context):
                paste_sections(template_rows, sections, layout)

            with LogContext("workbook serialization", **log_context):
                output = write_workbook(template_rows, sheet_name)

            logger.info(
                f"Filled template sheet '{sheet_name}' ({len(output)} bytes)",
                extra=log_context
            )
            return Result.ok(output)

        except Exception as e:
            logger.exception("Error processing XLSX files", extra={**log_context, "error": str(e)})
            return Result.processing_failure()
