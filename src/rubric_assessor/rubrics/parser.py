"""Convert a spreadsheet-style rubric template into a structured rubric.

Expected layout::

    [title, ...]
    ... free rows (student name, date, ...) ...
    ["Criteria", "Needs Work (1)", "Developing (2)", "Exceeds (3)"]   <- header row
    ["Grammar", "poor", "ok", "great"]                                <- criterion rows
    ["", "", "", ""]                                                  <- spacers are skipped
    ["TOTAL SCORE", ...]                                              <- terminator

The parser never raises: a sheet it cannot make sense of yields a rubric with
no criteria.
"""

import re

from .models import Criterion, Level, Rubric, Sheet

HEADER_MARKERS = ("criteria", "student name")
TERMINATOR_MARKERS = ("TOTAL SCORE", "NOTES FOR INSTRUCTION")

_PAREN_SCORE = re.compile(r"\((\d+)\)")


def _cell(row: list[str], col: int) -> str:
    if col < len(row) and row[col] is not None:
        return row[col]
    return ""


def find_header_row(rows: list[list[str]]) -> int | None:
    """Index of the first row whose first cell names the criteria column."""
    for index, row in enumerate(rows):
        first = _cell(row, 0).lower()
        if any(marker in first for marker in HEADER_MARKERS):
            return index
    return None


def is_terminator(label: str) -> bool:
    upper = label.upper()
    return any(marker in upper for marker in TERMINATOR_MARKERS)


def score_for_column(header_text: str, col: int) -> int:
    """Infer the score of a level column from its header text.

    A parenthesised number wins ("Needs Work (1)"). Otherwise the first of
    the digits 1, 2, 3 found anywhere in the text is used, checked in that
    order ("3 - Advanced" scores 3, but so does "Level 3/10" score 1 because
    of the "1" in "10"). Failing both, the column position is the score.
    """
    match = _PAREN_SCORE.search(header_text)
    if match:
        return int(match.group(1))
    if "1" in header_text:
        return 1
    if "2" in header_text:
        return 2
    if "3" in header_text:
        return 3
    return col


def parse_rubric_sheet(sheet: Sheet) -> Rubric:
    """Parse one template sheet.

    Args:
        sheet: Raw grid of text cells

    Returns:
        Rubric whose criteria keep the sheet's row order and whose levels
        keep its column order
    """
    rows = sheet.rows
    title = _cell(rows[0], 0) if rows else ""

    header_index = find_header_row(rows)
    if header_index is None:
        return Rubric(title=title, criteria=[])

    header = rows[header_index]
    criteria: list[Criterion] = []

    for index in range(header_index + 1, len(rows)):
        row = rows[index]
        label = _cell(row, 0)

        if not label:
            continue
        if is_terminator(label):
            break

        levels = []
        for col in range(1, len(row)):
            description = _cell(row, col)
            header_text = _cell(header, col)
            if description and header_text:
                levels.append(
                    Level(
                        score=score_for_column(header_text, col),
                        label=header_text,
                        description=description,
                    )
                )

        if levels:
            criteria.append(Criterion(id=f"crit_{index}", label=label, levels=levels))

    return Rubric(title=title, criteria=criteria)
