"""Spreadsheet import of lesson activities from CSV or XLSX files."""
from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from xml.etree import ElementTree
from zipfile import BadZipFile, ZipFile

from ..errors import ImportFormatError
from ..schemas import Activity, Lesson
from .lessons import group_activities
from .ordering import lesson_sort_key

LOGGER = logging.getLogger(__name__)

_MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_PKG_NS = "http://schemas.openxmlformats.org/package/2006/relationships"

# Activity attribute -> expected column header.
COLUMN_HEADERS: dict[str, str] = {
    "lesson_number": "Lesson Number",
    "category": "Category",
    "name": "Activity Name",
    "description": "Description",
    "level": "Level",
    "time": "Time (Mins)",
    "video_link": "Video",
    "music_link": "Music",
    "backing_link": "Backing",
    "resource_link": "Resource",
    "unit_name": "Unit Name",
}
REQUIRED_COLUMNS = ("category", "name")

# Category -> title used when a lesson's categories include it.
_TITLE_BY_CATEGORY: tuple[tuple[str, str], ...] = (
    ("Kodaly Songs", "Kodaly Lesson"),
    ("Rhythm Sticks", "Rhythm Sticks Lesson"),
    ("Percussion Games", "Percussion Lesson"),
    ("Scarf Songs", "Movement with Scarves"),
    ("Parachute Games", "Parachute Activities"),
    ("Action/Games Songs", "Action Games Lesson"),
)


@dataclass
class ImportResult:
    activities: List[Activity] = field(default_factory=list)
    lessons: dict[str, Lesson] = field(default_factory=dict)

    @property
    def lesson_numbers(self) -> list[str]:
        return list(self.lessons)


def read_rows(path: Path) -> list[list[str]]:
    """Read every row of a CSV file or the first XLSX worksheet as strings."""

    if not path.exists():
        raise FileNotFoundError(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        LOGGER.debug("Reading CSV spreadsheet: %s", path)
        try:
            with path.open("r", encoding="utf-8-sig", newline="") as handle:
                return [[(value or "").strip() for value in row] for row in csv.reader(handle)]
        except (UnicodeDecodeError, csv.Error) as exc:
            raise ImportFormatError(f"Could not read CSV file {path.name}: {exc}") from exc
    if suffix == ".xlsx":
        LOGGER.debug("Reading XLSX spreadsheet: %s", path)
        try:
            return _read_xlsx_rows(path)
        except (BadZipFile, KeyError, ElementTree.ParseError) as exc:
            raise ImportFormatError(f"Could not read workbook {path.name}") from exc
    raise ImportFormatError(f"Unsupported spreadsheet type: {suffix or path.name}")


def _read_xlsx_rows(path: Path) -> list[list[str]]:
    namespace = {"main": _MAIN_NS, "pkg": _PKG_NS}
    with ZipFile(path) as archive:
        shared_strings = _read_shared_strings(archive, namespace)
        with archive.open("xl/workbook.xml") as workbook_file:
            workbook = ElementTree.parse(workbook_file)
        with archive.open("xl/_rels/workbook.xml.rels") as rels_file:
            rels = ElementTree.parse(rels_file)
        targets = {
            rel.attrib["Id"]: rel.attrib["Target"]
            for rel in rels.findall("pkg:Relationship", namespace)
        }
        sheet = workbook.find("main:sheets/main:sheet", namespace)
        if sheet is None:
            return []
        target = targets.get(sheet.attrib.get(f"{{{_REL_NS}}}id", ""))
        if not target:
            return []
        with archive.open(f"xl/{target.lstrip('/').removeprefix('xl/')}") as sheet_file:
            tree = ElementTree.parse(sheet_file)

    rows: list[list[str]] = []
    for row in tree.findall("main:sheetData/main:row", namespace):
        values: list[str] = []
        for cell in row.findall("main:c", namespace):
            column = _column_index(cell.attrib.get("r", ""), len(values))
            while len(values) <= column:
                values.append("")
            values[column] = _cell_value(cell, shared_strings, namespace).strip()
        rows.append(values)
    return rows


def _read_shared_strings(archive: ZipFile, namespace: dict[str, str]) -> list[str]:
    try:
        with archive.open("xl/sharedStrings.xml") as shared_file:
            tree = ElementTree.parse(shared_file)
    except KeyError:
        return []
    return [
        "".join(node.text or "" for node in item.findall(".//main:t", namespace))
        for item in tree.findall("main:si", namespace)
    ]


def _cell_value(
    cell: ElementTree.Element, shared_strings: Sequence[str], namespace: dict[str, str]
) -> str:
    value_node = cell.find("main:v", namespace)
    if value_node is None:
        inline = cell.find("main:is/main:t", namespace)
        return (inline.text or "") if inline is not None else ""
    raw_value = value_node.text or ""
    if cell.attrib.get("t") == "s":
        try:
            return shared_strings[int(raw_value)]
        except (ValueError, IndexError):
            return raw_value
    return raw_value


def _column_index(reference: str, fallback: int) -> int:
    match = re.match(r"([A-Z]+)", reference)
    if not match:
        return fallback
    index = 0
    for char in match.group(1):
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def match_columns(headers: Sequence[str]) -> dict[str, int]:
    """Map activity attributes to column indexes by header name.

    Exact case-insensitive matches win; otherwise a header containing the
    expected name (or contained by it) is accepted.
    """

    folded = [header.strip().casefold() for header in headers]
    columns: dict[str, int] = {}
    for attribute, expected in COLUMN_HEADERS.items():
        target = expected.casefold()
        if target in folded:
            columns[attribute] = folded.index(target)
            continue
        for index, header in enumerate(folded):
            if header and (target in header or header in target):
                columns[attribute] = index
                break
    missing = [COLUMN_HEADERS[name] for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise ImportFormatError(f"Missing required columns: {', '.join(missing)}")
    return columns


def _parse_minutes(value: str) -> int:
    match = re.match(r"\s*(-?\d+)", value or "")
    if not match:
        return 0
    return max(0, int(match.group(1)))


def parse_activity_rows(rows: Sequence[Sequence[str]]) -> list[Activity]:
    if len(rows) < 2:
        raise ImportFormatError("The spreadsheet needs a header row and at least one activity")
    columns = match_columns(rows[0])

    def cell(row: Sequence[str], attribute: str) -> str:
        index = columns.get(attribute)
        if index is None or index >= len(row):
            return ""
        return (row[index] or "").strip()

    activities = []
    current_lesson = "1"
    for line, row in enumerate(rows[1:], start=2):
        lesson_number = cell(row, "lesson_number")
        if lesson_number:
            current_lesson = lesson_number
        category = cell(row, "category")
        name = cell(row, "name")
        if not category or not name:
            LOGGER.debug("Skipping spreadsheet row %d without category or name", line)
            continue
        activities.append(
            Activity(
                name=name,
                category=category,
                time=_parse_minutes(cell(row, "time")),
                description=cell(row, "description"),
                level=cell(row, "level") or None,
                video_link=cell(row, "video_link") or None,
                music_link=cell(row, "music_link") or None,
                backing_link=cell(row, "backing_link") or None,
                resource_link=cell(row, "resource_link") or None,
                unit_name=cell(row, "unit_name") or None,
                lesson_number=current_lesson,
            )
        )
    return activities


def default_lesson_title(categories: Sequence[str]) -> str:
    if not categories:
        return "Untitled Lesson"
    if "Welcome" in categories and "Goodbye" in categories:
        others = [c for c in categories if c not in ("Welcome", "Goodbye")]
        return f"{others[0]} Lesson" if others else "Standard Lesson"
    for category, title in _TITLE_BY_CATEGORY:
        if category in categories:
            return title
    return f"{categories[0]} Lesson"


def build_lessons(activities: Iterable[Activity]) -> dict[str, Lesson]:
    """Group activities by numeric lesson number, in numeric order."""

    by_lesson: dict[str, list[Activity]] = {}
    for activity in activities:
        number = activity.lesson_number or ""
        if not number.isdigit():
            LOGGER.debug("Ignoring activity %r with lesson number %r", activity.name, number)
            continue
        by_lesson.setdefault(number, []).append(activity)

    lessons = {}
    for number in sorted(by_lesson, key=lesson_sort_key):
        lesson = group_activities(by_lesson[number])
        lessons[number] = lesson.model_copy(
            update={"title": default_lesson_title(lesson.category_order)}
        )
    return lessons


def import_spreadsheet(path: Path, rows: Optional[Sequence[Sequence[str]]] = None) -> ImportResult:
    """Parse ``path`` (or pre-read ``rows``) into activities and lessons."""

    rows = rows if rows is not None else read_rows(path)
    activities = parse_activity_rows(rows)
    lessons = build_lessons(activities)
    LOGGER.info(
        "Parsed %d activities into %d lessons from %s", len(activities), len(lessons), path.name
    )
    return ImportResult(activities=activities, lessons=lessons)


__all__ = [
    "COLUMN_HEADERS",
    "ImportResult",
    "build_lessons",
    "default_lesson_title",
    "import_spreadsheet",
    "match_columns",
    "parse_activity_rows",
    "read_rows",
]
