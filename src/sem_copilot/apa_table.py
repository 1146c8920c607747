import io
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

DEFAULT_TABLE_CSV = (
    "Latent Variable, Cronbach Alpha, CR, AVE\n"
    "Leadership, 0.85, 0.88, 0.62\n"
    "Infrastructure, 0.78, 0.81, 0.54\n"
    "Quality, 0.91, 0.93, 0.70"
)
DEFAULT_TABLE_TITLE = "Table 1\nReliability and Validity Analysis"
DEFAULT_TABLE_NOTE = "Note. CR = Composite Reliability; AVE = Average Variance Extracted."

Rows = List[List[str]]


@dataclass
class ApaTable:
    title: str
    header: List[str]
    body: Rows
    note: str = ""
    hidden_columns: List[str] = field(default_factory=list)

    @classmethod
    def from_csv(cls, title: str, csv_text: str, note: str = "", hidden_columns: Iterable[str] = ()) -> "ApaTable":
        header, body = parse_csv_table(csv_text)
        return cls(title=title, header=header, body=body, note=note, hidden_columns=list(hidden_columns))

    def visible(self) -> Tuple[List[str], Rows]:
        return select_visible_columns(self.header, self.body, self.hidden_columns)

    def toggle_column(self, column: str) -> None:
        self.hidden_columns = toggle_hidden_column(self.hidden_columns, column)

    def to_markdown(self) -> str:
        header, body = self.visible()
        return render_markdown_table(self.title, header, body, self.note)

    def to_pdf(self) -> bytes:
        header, body = self.visible()
        return render_pdf_table(self.title, header, body, self.note)


def parse_csv_table(csv_text: str) -> Tuple[List[str], Rows]:
    text = (csv_text or "").strip()
    if not text:
        return [], []
    rows = [[cell.strip() for cell in line.split(",")] for line in text.split("\n")]
    return rows[0], rows[1:]


def toggle_hidden_column(hidden_columns: Iterable[str], column: str) -> List[str]:
    hidden = list(hidden_columns)
    if column in hidden:
        return [name for name in hidden if name != column]
    return hidden + [column]


def select_visible_columns(header: List[str], body: Rows, hidden_columns: Iterable[str]) -> Tuple[List[str], Rows]:
    hidden = set(hidden_columns)
    indices = [idx for idx, name in enumerate(header) if name not in hidden]
    visible_header = [header[idx] for idx in indices]
    # Short rows get empty cells instead of shifting columns.
    visible_body = [[row[idx] if idx < len(row) else "" for idx in indices] for row in body]
    return visible_header, visible_body


def split_title(title: str) -> Tuple[str, str]:
    lines = (title or "").split("\n", 1)
    first = lines[0].strip()
    second = lines[1].strip() if len(lines) > 1 else ""
    return first, second


def render_markdown_table(title: str, header: List[str], body: Rows, note: str = "") -> str:
    number, caption = split_title(title)
    lines: List[str] = []
    if number:
        lines.append(f"**{number}**  " if caption else f"**{number}**")
    if caption:
        lines.append(f"*{caption}*")
    if lines:
        lines.append("")

    if header:
        lines.append(f"| {' | '.join(header)} |")
        lines.append(f"| {' | '.join('---' for _ in header)} |")
        for row in body:
            lines.append(f"| {' | '.join(row)} |")

    if note.strip():
        lines.append("")
        lines.append(f"*{note.strip()}*")
    return "\n".join(lines) + "\n"


def render_pdf_table(title: str, header: List[str], body: Rows, note: str = "") -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title="APA Table",
    )
    number_style = ParagraphStyle(name="ApaNumber", fontName="Times-Bold", fontSize=12, leading=15)
    caption_style = ParagraphStyle(name="ApaCaption", fontName="Times-Italic", fontSize=12, leading=15)
    note_style = ParagraphStyle(name="ApaNote", fontName="Times-Italic", fontSize=10, leading=12)

    number, caption = split_title(title)
    story = []
    if number:
        story.append(Paragraph(escape(number), number_style))
    if caption:
        story.append(Paragraph(escape(caption), caption_style))
    story.append(Spacer(1, 4 * mm))

    if header:
        table = Table([header] + body, hAlign="LEFT")
        table.setStyle(TableStyle(_apa_table_commands(len(body))))
        story.append(table)

    if note.strip():
        story.append(Spacer(1, 3 * mm))
        story.append(Paragraph(escape(note.strip()), note_style))

    doc.build(story)
    return buffer.getvalue()


def _apa_table_commands(body_rows: int) -> list:
    commands = [
        ("FONT", (0, 0), (-1, 0), "Times-Bold", 10),
        ("FONT", (0, 1), (-1, -1), "Times-Roman", 10),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ("LINEABOVE", (0, 0), (-1, 0), 1, colors.black),
        ("LINEBELOW", (0, 0), (-1, 0), 1.5, colors.black),
    ]
    if body_rows:
        commands.append(("LINEBELOW", (0, body_rows), (-1, body_rows), 1, colors.black))
    return commands
