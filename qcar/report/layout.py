"""Page-flow layout on top of a reportlab canvas.

Positions are in millimetres measured from the top-left corner of the page,
with y growing downwards. LayoutCursor converts to reportlab's bottom-left
point space when drawing.
"""

import io
import logging
from typing import List, Optional, Sequence, Tuple

from reportlab.lib import pagesizes
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

FONT_NORMAL = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)
LABEL_GREY: RGB = (80, 80, 80)
VALUE_GREY: RGB = (30, 30, 30)

LINE_HEIGHT = 5.0


def page_size_for(name: str) -> Tuple[float, float]:
    """Look up a reportlab page size by name (A4, LETTER, ...)."""
    try:
        return getattr(pagesizes, name.upper())
    except AttributeError:
        raise ValueError(f"Unknown page size: {name}")


class LayoutCursor:
    """
    Write position and page state for one document.

    Owned by a single composer call. Before a block of known height is
    written, ensure_space() starts a new page if the block would cross the
    bottom margin.
    """

    def __init__(
        self,
        page_size: str = "A4",
        margin: float = 20.0,
        compress: bool = True
    ):
        self.buffer = io.BytesIO()
        self.page_size = page_size_for(page_size)
        self.canvas = canvas.Canvas(
            self.buffer,
            pagesize=self.page_size,
            pageCompression=1 if compress else 0,
        )
        self.page_width = self.page_size[0] / mm
        self.page_height = self.page_size[1] / mm
        self.margin = margin
        self.y = margin
        self.page_count = 1

    # Page flow

    def ensure_space(self, required: float) -> bool:
        """Break the page if `required` mm would cross the bottom margin."""
        if self.y + required > self.page_height - self.margin:
            self.new_page()
            return True
        return False

    def new_page(self, top: Optional[float] = None) -> None:
        self.canvas.showPage()
        self.page_count += 1
        self.y = self.margin if top is None else top
        logger.debug(f"Started page {self.page_count}")

    def advance(self, amount: float) -> None:
        self.y += amount

    def finish(self) -> bytes:
        self.canvas.save()
        return self.buffer.getvalue()

    # Drawing primitives

    def _px(self, x: float) -> float:
        return x * mm

    def _py(self, y: float) -> float:
        return (self.page_height - y) * mm

    def text(
        self,
        value: str,
        x: float,
        y: float,
        font: str = FONT_NORMAL,
        size: float = 9,
        color: RGB = VALUE_GREY,
        align: str = "left"
    ) -> None:
        c = self.canvas
        c.setFont(font, size)
        c.setFillColorRGB(*_unit(color))
        if align == "right":
            c.drawRightString(self._px(x), self._py(y), value)
        elif align == "center":
            c.drawCentredString(self._px(x), self._py(y), value)
        else:
            c.drawString(self._px(x), self._py(y), value)

    def rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: Optional[RGB] = None,
        stroke: Optional[RGB] = None,
        line_width: float = 0.5,
        radius: float = 0.0
    ) -> None:
        c = self.canvas
        if fill is not None:
            c.setFillColorRGB(*_unit(fill))
        if stroke is not None:
            c.setStrokeColorRGB(*_unit(stroke))
            c.setLineWidth(line_width)
        # reportlab anchors rectangles at the bottom-left corner
        args = (self._px(x), self._py(y + height), width * mm, height * mm)
        if radius:
            c.roundRect(*args, radius * mm, stroke=int(stroke is not None), fill=int(fill is not None))
        else:
            c.rect(*args, stroke=int(stroke is not None), fill=int(fill is not None))

    def circle(self, x: float, y: float, radius: float, fill: RGB) -> None:
        self.canvas.setFillColorRGB(*_unit(fill))
        self.canvas.circle(self._px(x), self._py(y), radius * mm, stroke=0, fill=1)

    def line(self, x1: float, y1: float, x2: float, y2: float, color: RGB) -> None:
        self.canvas.setStrokeColorRGB(*_unit(color))
        self.canvas.setLineWidth(0.5)
        self.canvas.line(self._px(x1), self._py(y1), self._px(x2), self._py(y2))

    def image(self, reader, x: float, y: float, width: float, height: float) -> None:
        self.canvas.drawImage(
            reader,
            self._px(x),
            self._py(y + height),
            width=width * mm,
            height=height * mm,
        )

    # Text measurement

    def text_width(self, value: str, font: str = FONT_NORMAL, size: float = 9) -> float:
        return stringWidth(value, font, size) / mm

    def wrap(self, value: str, width: float, font: str = FONT_NORMAL, size: float = 9) -> List[str]:
        """Break text into lines no wider than `width` mm."""
        lines = simpleSplit(value, font, size, width * mm)
        return lines or [""]

    # Layout blocks

    def section_header(self, title: str, color: RGB) -> None:
        self.ensure_space(20)
        self.rect(15, self.y - 5, self.page_width - 30, 10, fill=color)
        self.text(title, 20, self.y + 2, font=FONT_BOLD, size=12, color=BLACK)
        self.y += 12

    def subheading(self, title: str, color: RGB) -> None:
        self.text(title, 20, self.y, font=FONT_BOLD, size=10, color=color)
        self.y += 8

    def field_label(self, title: str) -> None:
        self.text(title, 20, self.y, font=FONT_BOLD, size=9, color=LABEL_GREY)
        self.y += 6

    def info_row(self, label: str, value: str, indent: float = 20) -> None:
        """Single label with its value wrapped beside it."""
        self.ensure_space(8)
        self.text(f"{label}:", indent, self.y, font=FONT_BOLD, size=9, color=LABEL_GREY)
        label_width = self.text_width(f"{label}: ")
        max_width = self.page_width - indent - label_width - 20
        lines = self.wrap(value, max_width)
        for index, line in enumerate(lines):
            self.text(line, indent + label_width, self.y + index * LINE_HEIGHT)
        self.y += len(lines) * LINE_HEIGHT + 2

    def two_column_row(self, label1: str, value1: str, label2: str, value2: str) -> None:
        self.ensure_space(8)
        col1_x = 20
        col2_x = self.page_width / 2 + 5
        self.text(f"{label1}:", col1_x, self.y, font=FONT_BOLD, size=9, color=LABEL_GREY)
        self.text(f"{label2}:", col2_x, self.y, font=FONT_BOLD, size=9, color=LABEL_GREY)
        self.text(value1, col1_x + 45, self.y)
        self.text(value2, col2_x + 45, self.y)
        self.y += 7

    def paragraph(
        self,
        value: str,
        font: str = FONT_NORMAL,
        size: float = 9,
        color: RGB = VALUE_GREY
    ) -> int:
        """Wrapped text across the content width, breaking pages per line."""
        lines = self.wrap(value, self.page_width - 40, font=font, size=size)
        for line in lines:
            self.ensure_space(6)
            self.text(line, 20, self.y, font=font, size=size, color=color)
            self.y += LINE_HEIGHT
        return len(lines)

    def band(self, height: float, color: RGB) -> None:
        """Full-width colour band at the top of the current page."""
        self.rect(0, 0, self.page_width, height, fill=color)

    def key_value_box(
        self,
        title: str,
        items: Sequence[Tuple[str, str]],
        x: float,
        width: float,
        color: RGB
    ) -> float:
        """
        Boxed mini table: coloured title strip, then label/value pairs.

        Returns:
            Box height in mm
        """
        top = self.y
        box_height = len(items) * 12 + 10
        self.rect(x, top, width, 12, fill=color, radius=2)
        self.text(title, x + 5, top + 8, font=FONT_BOLD, size=9, color=WHITE)
        self.rect(x, top + 12, width, box_height - 12, fill=(250, 250, 250))
        self.rect(x, top, width, box_height, stroke=(220, 220, 220))

        item_y = top + 20
        for label, value in items:
            self.text(f"{label}:", x + 5, item_y, font=FONT_BOLD, size=8, color=(100, 100, 100))
            self.text(value, x + 5, item_y + 5, font=FONT_NORMAL, size=8, color=VALUE_GREY)
            item_y += 12
        return box_height


def _unit(color: RGB) -> Tuple[float, float, float]:
    return tuple(channel / 255.0 for channel in color)
