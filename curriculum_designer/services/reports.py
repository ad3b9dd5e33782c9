"""Printable lesson documents: section shaping, pagination and PDF output."""
from __future__ import annotations

import html
import logging
import re
import textwrap
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Mapping, Optional, Sequence

from ..config import DEFAULT_CATEGORY_COLOR
from ..errors import ExportError, ExportInProgressError
from ..schemas import Lesson, LessonPlan, Unit
from .half_terms import HalfTerm

LOGGER = logging.getLogger(__name__)

# Page geometry in millimetres on A4 portrait, measured from the top edge.
PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
LEFT_MARGIN_MM = 20.0
TOP_MARGIN_MM = 20.0
BLOCK_BREAK_MM = 250.0
LINE_BREAK_MM = 270.0
FOOTER_Y_MM = 287.0
WRAP_WIDTH = 90

_MM_TO_PT = 72 / 25.4
_TAG_RE = re.compile(r"<[^>]*>")
_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|]')


@dataclass(frozen=True)
class ActivityBlock:
    name: str
    minutes: int
    description: str
    resources: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CategorySection:
    name: str
    color: str
    activities: tuple[ActivityBlock, ...]


@dataclass(frozen=True)
class LessonSection:
    """Everything the printed page needs about one lesson."""

    number: str
    title: str
    duration: int
    categories: tuple[CategorySection, ...]
    learning_goals: tuple[tuple[str, tuple[str, ...]], ...] = ()

    @property
    def heading(self) -> str:
        return f"Lesson {self.number}: {self.title}"


@dataclass(frozen=True)
class CoverPage:
    """Title page of a batch export."""

    display_name: str
    heading: str
    subtitle: str
    lesson_count: int
    generated_on: date

    @classmethod
    def for_half_term(
        cls, display_name: str, half_term: HalfTerm, lesson_count: int, generated_on: date
    ) -> "CoverPage":
        subtitle = f"{half_term.name} ({half_term.months})"
        return cls(display_name, "Half-Term Plan", subtitle, lesson_count, generated_on)

    @classmethod
    def for_unit(
        cls, display_name: str, unit: Unit, lesson_count: int, generated_on: date
    ) -> "CoverPage":
        return cls(display_name, "Unit Plan", unit.name, lesson_count, generated_on)


@dataclass(frozen=True)
class TextLine:
    y: float
    text: str
    size: int = 11
    bold: bool = False
    x: float = LEFT_MARGIN_MM


@dataclass
class Page:
    lines: list[TextLine] = field(default_factory=list)


def strip_html(value: str) -> str:
    """Drop markup tags and decode entities from rich-text descriptions."""

    text = _TAG_RE.sub(" ", value or "")
    return re.sub(r"[ \t]+", " ", html.unescape(text)).strip()


def group_learning_goals(statements: Iterable[str]) -> tuple[tuple[str, tuple[str, ...]], ...]:
    """Group ``"Area: goal"`` statements by area, keeping first-seen order."""

    areas: dict[str, list[str]] = {}
    for statement in statements:
        area, separator, goal = statement.partition(":")
        if not separator:
            area, goal = "General", statement
        areas.setdefault(area.strip(), []).append(goal.strip())
    return tuple((area, tuple(goals)) for area, goals in areas.items())


def shape_lesson(
    number: str,
    lesson: Lesson,
    color_for: Optional[Callable[[str], str]] = None,
    keep_html: bool = False,
    include_goals: bool = True,
) -> LessonSection:
    categories = []
    for category in lesson.category_order:
        blocks = tuple(
            ActivityBlock(
                name=activity.name,
                minutes=activity.time,
                description=activity.description if keep_html else strip_html(activity.description),
                resources=tuple(activity.resource_links()),
            )
            for activity in lesson.grouped[category]
        )
        color = color_for(category) if color_for else DEFAULT_CATEGORY_COLOR
        categories.append(CategorySection(name=category, color=color, activities=blocks))
    goals = group_learning_goals(lesson.eyfs_statements) if include_goals else ()
    return LessonSection(
        number=number,
        title=lesson.display_title(number),
        duration=lesson.total_time,
        categories=tuple(categories),
        learning_goals=goals,
    )


class _Paginator:
    def __init__(self) -> None:
        self.pages: list[Page] = []
        self.y = TOP_MARGIN_MM

    def new_page(self) -> None:
        self.pages.append(Page())
        self.y = TOP_MARGIN_MM

    def ensure_room(self, threshold: float) -> None:
        if not self.pages or self.y > threshold:
            self.new_page()

    def write(self, text: str, advance: float, size: int = 11, bold: bool = False, indent: float = 0) -> None:
        self.pages[-1].lines.append(
            TextLine(y=self.y, text=text, size=size, bold=bold, x=LEFT_MARGIN_MM + indent)
        )
        self.y += advance


def paginate(sections: Sequence[LessonSection], cover: Optional[CoverPage] = None) -> list[Page]:
    """Lay sections out top-down, breaking pages on the vertical watermark.

    Every lesson starts on a fresh page. Category headers and activity names
    move to a new page past ``BLOCK_BREAK_MM``; wrapped description and
    resource lines past ``LINE_BREAK_MM``.
    """

    paginator = _Paginator()
    if cover is not None:
        paginator.new_page()
        paginator.y = 80
        paginator.write(cover.display_name, 14, size=24, bold=True)
        paginator.write(cover.heading, 12, size=18)
        paginator.write(cover.subtitle, 10, size=14)
        paginator.write(f"{cover.lesson_count} Lessons", 10, size=12)
        paginator.write(f"Generated on {cover.generated_on.strftime('%d %B %Y')}", 10, size=10)

    for section in sections:
        paginator.new_page()
        paginator.write(section.heading, 8, size=16, bold=True)
        paginator.write(f"Duration: {section.duration} minutes", 10)

        if section.learning_goals:
            paginator.write("Learning Goals", 7, size=13, bold=True)
            for area, goals in section.learning_goals:
                paginator.ensure_room(LINE_BREAK_MM)
                paginator.write(area, 5, size=10, bold=True)
                for goal in goals:
                    paginator.ensure_room(LINE_BREAK_MM)
                    paginator.write(f"- {goal}", 5, size=10, indent=4)
            paginator.y += 3

        for category in section.categories:
            paginator.ensure_room(BLOCK_BREAK_MM)
            paginator.write(category.name, 7, size=13, bold=True)
            for block in category.activities:
                paginator.ensure_room(BLOCK_BREAK_MM)
                paginator.write(f"{block.name} ({block.minutes} mins)", 6, bold=True, indent=2)
                for line in textwrap.wrap(block.description, WRAP_WIDTH):
                    paginator.ensure_room(LINE_BREAK_MM)
                    paginator.write(line, 5, size=10, indent=4)
                for label, url in block.resources:
                    paginator.ensure_room(LINE_BREAK_MM)
                    paginator.write(f"{label}: {url}", 5, size=9, indent=4)
                paginator.y += 3
    return paginator.pages


def _pdf_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _pdf_page_stream(page: Page, footer: str) -> bytes:
    height_pt = PAGE_HEIGHT_MM * _MM_TO_PT
    stream_lines = ["BT"]
    for line in page.lines:
        font = "/F2" if line.bold else "/F1"
        x = line.x * _MM_TO_PT
        y = height_pt - line.y * _MM_TO_PT
        stream_lines.append(f"{font} {line.size} Tf")
        stream_lines.append(f"1 0 0 1 {x:.2f} {y:.2f} Tm")
        stream_lines.append(f"({_pdf_escape(line.text)}) Tj")
    stream_lines.append("/F1 8 Tf")
    stream_lines.append(
        f"1 0 0 1 {(PAGE_WIDTH_MM / 2 - 10) * _MM_TO_PT:.2f} "
        f"{height_pt - FOOTER_Y_MM * _MM_TO_PT:.2f} Tm"
    )
    stream_lines.append(f"({_pdf_escape(footer)}) Tj")
    stream_lines.append("ET")
    return "\n".join(stream_lines).encode("latin-1", errors="replace")


def render_pdf(pages: Sequence[Page]) -> bytes:
    """Serialise laid-out pages into a minimal multi-page PDF document."""

    if not pages:
        pages = [Page()]
    width_pt = PAGE_WIDTH_MM * _MM_TO_PT
    height_pt = PAGE_HEIGHT_MM * _MM_TO_PT
    first_page_obj = 5
    kids = " ".join(f"{first_page_obj + 2 * index} 0 R" for index in range(len(pages)))

    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode("latin-1"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica-Bold >>",
    ]
    for index, page in enumerate(pages):
        content_ref = first_page_obj + 2 * index + 1
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {width_pt:.2f} {height_pt:.2f}] "
                f"/Contents {content_ref} 0 R "
                "/Resources << /Font << /F1 3 0 R /F2 4 0 R >> >> >>"
            ).encode("latin-1")
        )
        stream = _pdf_page_stream(page, f"Page {index + 1} of {len(pages)}")
        objects.append(
            f"<< /Length {len(stream)} >>\nstream\n".encode("latin-1") + stream + b"\nendstream"
        )

    pdf = bytearray(b"%PDF-1.4\n")
    offsets: list[int] = []
    for index, obj in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf.extend(f"{index} 0 obj\n".encode("latin-1"))
        pdf.extend(obj)
        pdf.extend(b"\nendobj\n")

    xref_offset = len(pdf)
    pdf.extend(f"xref\n0 {len(objects) + 1}\n".encode("latin-1"))
    pdf.extend(b"0000000000 65535 f \n")
    for offset in offsets:
        pdf.extend(f"{offset:010d} 00000 n \n".encode("latin-1"))

    pdf.extend(
        (
            "trailer\n"
            f"<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
            "startxref\n"
            f"{xref_offset}\n"
            "%%EOF"
        ).encode("latin-1")
    )
    return bytes(pdf)


def _filename_part(value: str) -> str:
    return re.sub(r"\s+", "_", _UNSAFE_FILENAME_RE.sub("", value.strip()))


def lesson_filename(class_name: str, title: str) -> str:
    return f"{_filename_part(class_name)}_{_filename_part(title)}.pdf"


def half_term_filename(class_name: str, half_term: HalfTerm) -> str:
    return f"{_filename_part(class_name)}_{_filename_part(half_term.name)}_Half_Term_Plan.pdf"


def unit_filename(class_name: str, unit: Unit) -> str:
    return f"{_filename_part(class_name)}_{_filename_part(unit.name)}_Unit_Plan.pdf"


def lesson_plan_export(plan: LessonPlan, today: Optional[date] = None) -> tuple[str, dict]:
    """JSON-ready summary of a calendar plan and its download filename."""

    today = today or date.today()
    document = {
        "date": plan.date.isoformat(),
        "week": plan.week,
        "class_name": plan.class_name,
        "title": plan.title,
        "duration": plan.duration,
        "activities": [
            {
                "name": activity.name,
                "category": activity.category,
                "time": activity.time,
                "description": activity.description,
                "level": activity.level,
            }
            for activity in plan.activities
        ],
        "notes": plan.notes,
        "status": plan.status,
    }
    return f"lesson-plan-{today.isoformat()}.json", document


class PdfExporter:
    """Single-flight PDF export: a second request while one runs is refused."""

    def __init__(self, renderer: Callable[[Sequence[Page]], bytes] = render_pdf) -> None:
        self._renderer = renderer
        self.in_progress = False

    def render(self, pages: Sequence[Page]) -> bytes:
        if self.in_progress:
            raise ExportInProgressError("An export is already running")
        self.in_progress = True
        try:
            return self._renderer(pages)
        except ExportError:
            raise
        except Exception as exc:  # noqa: BLE001 - surface as ExportError
            LOGGER.exception("PDF rendering failed")
            raise ExportError("Failed to generate the PDF") from exc
        finally:
            self.in_progress = False

    def export_lesson(
        self,
        class_name: str,
        number: str,
        lesson: Lesson,
        color_for: Optional[Callable[[str], str]] = None,
        keep_html: bool = False,
    ) -> tuple[str, bytes]:
        section = shape_lesson(number, lesson, color_for, keep_html)
        return lesson_filename(class_name, section.title), self.render(paginate([section]))

    def _export_batch(
        self,
        numbers: Sequence[str],
        lessons: Mapping[str, Lesson],
        make_cover: Callable[[int, date], CoverPage],
        color_for: Optional[Callable[[str], str]],
    ) -> bytes:
        # Numbers with no stored lesson are skipped.
        sections = [
            shape_lesson(number, lessons[number], color_for)
            for number in numbers
            if number in lessons
        ]
        cover = make_cover(len(sections), datetime.now(timezone.utc).date())
        return self.render(paginate(sections, cover=cover))

    def export_half_term(
        self,
        class_name: str,
        half_term: HalfTerm,
        lessons: Mapping[str, Lesson],
        numbers: Sequence[str],
        display_name: Optional[str] = None,
        color_for: Optional[Callable[[str], str]] = None,
    ) -> tuple[str, bytes]:
        """Cover page plus one section per lesson in ``numbers`` order."""

        name = display_name or class_name
        pdf_bytes = self._export_batch(
            numbers,
            lessons,
            lambda count, today: CoverPage.for_half_term(name, half_term, count, today),
            color_for,
        )
        return half_term_filename(class_name, half_term), pdf_bytes

    def export_unit(
        self,
        class_name: str,
        unit: Unit,
        lessons: Mapping[str, Lesson],
        display_name: Optional[str] = None,
        color_for: Optional[Callable[[str], str]] = None,
    ) -> tuple[str, bytes]:
        """Cover page plus the unit's lessons in unit order."""

        name = display_name or class_name
        pdf_bytes = self._export_batch(
            unit.lesson_numbers,
            lessons,
            lambda count, today: CoverPage.for_unit(name, unit, count, today),
            color_for,
        )
        LOGGER.info("Exported unit %s for %s", unit.name, class_name)
        return unit_filename(class_name, unit), pdf_bytes


__all__ = [
    "ActivityBlock",
    "CategorySection",
    "CoverPage",
    "LessonSection",
    "Page",
    "PdfExporter",
    "TextLine",
    "group_learning_goals",
    "half_term_filename",
    "lesson_filename",
    "lesson_plan_export",
    "paginate",
    "render_pdf",
    "shape_lesson",
    "strip_html",
    "unit_filename",
]
