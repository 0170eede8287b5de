from __future__ import annotations

from urllib.parse import quote

ACCENT_COLOR = "#007aff"
SUCCESS_COLOR = "#34c759"
ERROR_COLOR = "#ff3b30"


def build_book_icon_svg(
    label: str = "TXT",
    *,
    cover: str = ACCENT_COLOR,
    pages: str = "#f8fafc",
    text_color: str = "#ffffff",
) -> str:
    """Return a small open-book SVG badge with a short label on the cover."""
    normalized = (label or "TXT").strip().upper() or "TXT"
    normalized = normalized[:3]
    font_size = "15" if len(normalized) > 2 else "20"
    return f"""<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 64 64" role="img" aria-label="{normalized} book">
  <rect x="8" y="6" width="48" height="52" rx="6" ry="6" fill="{cover}" />
  <rect x="14" y="46" width="42" height="8" rx="2" ry="2" fill="{pages}" />
  <text x="34" y="34" text-anchor="middle" font-family="-apple-system, 'Segoe UI', sans-serif"
        font-size="{font_size}" font-weight="700" fill="{text_color}">{normalized}</text>
</svg>"""


def icon_data_url(label: str = "TXT", *, cover: str = ACCENT_COLOR) -> str:
    """Wrap the book icon in a data URL so pages can inline it."""
    return "data:image/svg+xml," + quote(build_book_icon_svg(label=label, cover=cover))


FAVICON_URL = icon_data_url()


__all__ = [
    "ACCENT_COLOR",
    "ERROR_COLOR",
    "FAVICON_URL",
    "SUCCESS_COLOR",
    "build_book_icon_svg",
    "icon_data_url",
]
