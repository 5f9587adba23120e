from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from globetrotter.core.errors import RenderUnavailableError
from globetrotter.share_card import (
    CARD_H,
    CARD_W,
    ShareCardRenderer,
    coerce_score,
    coerce_username,
    render_share_card,
    share_message,
)


def _open(png: bytes) -> Image.Image:
    return Image.open(io.BytesIO(png))


def test_render_produces_fixed_size_png() -> None:
    png = render_share_card("ada", 7)

    assert png
    img = _open(png)
    assert img.format == "PNG"
    assert img.size == (CARD_W, CARD_H) == (1200, 630)


def test_blank_username_and_garbage_score_use_defaults() -> None:
    assert coerce_username("") == "Player"
    assert coerce_username("   ") == "Player"
    assert coerce_username(None) == "Player"
    assert coerce_score("abc") == 0
    assert coerce_score(None) == 0
    assert coerce_score(" 12 ") == 12
    assert share_message("", "abc") == "Player scored 0!"

    img = _open(render_share_card("", "abc"))
    assert img.size == (1200, 630)


def test_very_long_username_still_fits_canvas() -> None:
    img = _open(render_share_card("x" * 300, 999999))
    assert img.size == (1200, 630)


def test_background_uses_palette() -> None:
    img = _open(render_share_card("ada", 1)).convert("RGB")
    # Corners are untouched background.
    assert img.getpixel((0, 0)) == (30, 144, 255)
    assert img.getpixel((CARD_W - 1, CARD_H - 1)) == (30, 144, 255)


def test_missing_explicit_font_is_render_unavailable(tmp_path: Path) -> None:
    renderer = ShareCardRenderer(font_path=tmp_path / "missing.ttf")
    with pytest.raises(RenderUnavailableError):
        renderer.render("ada", 1)


def test_without_any_font_file_builtin_font_is_used(tmp_path: Path) -> None:
    renderer = ShareCardRenderer(search_paths=[tmp_path / "none.ttf"])
    img = _open(renderer.render("ada", 3))
    assert img.size == (1200, 630)
