"""Share card rendering.

Produces the fixed-layout PNG a player shares after a game: a title, the
"{username} scored {score}!" line and a tagline over a solid background.

Fonts:
  An explicitly configured font must load, otherwise rendering is unavailable.
  Without one, `assets/fonts/Roboto-Regular.ttf` under the project root is
  used when present, then a few common system fonts, then Pillow's built-in
  scalable font.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from globetrotter.config import PROJECT_ROOT
from globetrotter.core.errors import RenderUnavailableError


logger = logging.getLogger(__name__)

# ── Layout ───────────────────────────────────────────────────────────────────

CARD_W = 1200
CARD_H = 630
CANVAS_PAD = 20

BG_COLOR = (30, 144, 255)  # #1e90ff
FG_COLOR = (255, 255, 255)

TITLE_TEXT = "Globetrotter Challenge"
TAGLINE_TEXT = "Join the fun!"

TITLE_FONT_SIZE = 60
MESSAGE_FONT_SIZE = 40
MESSAGE_FONT_SIZE_MIN = 16
TAGLINE_FONT_SIZE = 30
TITLE_GAP = 20
TAGLINE_GAP = 20

DEFAULT_USERNAME = "Player"
DEFAULT_SCORE = 0

CONTENT_TYPE = "image/png"

BUNDLED_FONT = PROJECT_ROOT / "assets" / "fonts" / "Roboto-Regular.ttf"
SYSTEM_FONTS: tuple[Path, ...] = (
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"),
    Path("/usr/share/fonts/liberation/LiberationSans-Regular.ttf"),
    Path("/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf"),
    Path("/System/Library/Fonts/Helvetica.ttc"),
    Path("/Library/Fonts/Arial.ttf"),
    Path("C:/Windows/Fonts/arial.ttf"),
)


# ── Input coercion ───────────────────────────────────────────────────────────

def coerce_username(raw: object) -> str:
    if not isinstance(raw, str):
        return DEFAULT_USERNAME
    name = " ".join(raw.split())
    return name or DEFAULT_USERNAME


def coerce_score(raw: object) -> int:
    if isinstance(raw, bool):
        return DEFAULT_SCORE
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return DEFAULT_SCORE
    return DEFAULT_SCORE


def share_message(username: object, score: object) -> str:
    return f"{coerce_username(username)} scored {coerce_score(score)}!"


# ── Renderer ─────────────────────────────────────────────────────────────────

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont


class ShareCardRenderer:
    def __init__(self, *, font_path: Path | None = None, search_paths: Sequence[Path] | None = None) -> None:
        self._explicit_font = font_path
        self._search_paths = tuple(search_paths) if search_paths is not None else (BUNDLED_FONT, *SYSTEM_FONTS)

    def _resolve_font_path(self) -> Path | None:
        if self._explicit_font is not None:
            return self._explicit_font
        return next((p for p in self._search_paths if p.exists()), None)

    def _load_font(self, path: Path | None, size: int) -> FontType:
        if path is not None:
            try:
                return ImageFont.truetype(str(path), size)
            except OSError as e:
                if self._explicit_font is not None:
                    raise RenderUnavailableError(f"Cannot load font {path}: {e}") from e
                logger.warning("Font %s unusable, falling back to built-in font: %s", path, e)
        try:
            return ImageFont.load_default(size=size)
        except (OSError, TypeError) as e:
            raise RenderUnavailableError(f"No usable font: {e}") from e

    def _fit_font(self, draw: ImageDraw.ImageDraw, path: Path | None, text: str) -> FontType:
        max_w = CARD_W - 2 * CANVAS_PAD
        size = MESSAGE_FONT_SIZE
        font = self._load_font(path, size)
        while size > MESSAGE_FONT_SIZE_MIN and _text_size(draw, text, font, stroke=1)[0] > max_w:
            size -= 4
            font = self._load_font(path, size)
        return font

    def render(self, username: object = None, score: object = None) -> bytes:
        """Render the share card PNG. Raises RenderUnavailableError if fonts or imaging fail."""

        message = share_message(username, score)
        path = self._resolve_font_path()

        try:
            img = Image.new("RGB", (CARD_W, CARD_H), BG_COLOR)
            draw = ImageDraw.Draw(img)

            # (text, font, stroke width, gap above)
            lines = [
                (TITLE_TEXT, self._load_font(path, TITLE_FONT_SIZE), 0, 0),
                (message, self._fit_font(draw, path, message), 1, TITLE_GAP),
                (TAGLINE_TEXT, self._load_font(path, TAGLINE_FONT_SIZE), 0, TAGLINE_GAP),
            ]
            sizes = [_text_size(draw, text, font, stroke=stroke) for text, font, stroke, _ in lines]
            block_h = sum(h for _, h in sizes) + sum(gap for *_, gap in lines)

            y = (CARD_H - block_h) / 2
            for (text, font, stroke, gap), (w, h) in zip(lines, sizes):
                y += gap
                left, top, _, _ = draw.textbbox((0, 0), text, font=font, stroke_width=stroke)
                x = (CARD_W - w) / 2 - left
                draw.text((x, y - top), text, font=font, fill=FG_COLOR, stroke_width=stroke, stroke_fill=FG_COLOR)
                y += h

            buf = io.BytesIO()
            img.save(buf, format="PNG")
        except RenderUnavailableError:
            raise
        except (OSError, ValueError) as e:
            raise RenderUnavailableError(f"Rendering failed: {e}") from e
        return buf.getvalue()


def _text_size(draw: ImageDraw.ImageDraw, text: str, font: FontType, *, stroke: int = 0) -> tuple[int, int]:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font, stroke_width=stroke)
    return int(right - left), int(bottom - top)


def render_share_card(username: object = None, score: object = None, *, font_path: Path | None = None) -> bytes:
    return ShareCardRenderer(font_path=font_path).render(username, score)
