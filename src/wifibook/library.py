from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path

LIBRARY_FILENAME = "library.json"
BOOK_EXTENSION = ".txt"

_INVALID_BOOK_CHARS = set('<>:"/\\|?*')


def normalize_book_filename(filename: str | None) -> str:
    if isinstance(filename, str):
        candidate = Path(filename.replace("\\", "/")).name.strip()
    else:
        candidate = ""
    cleaned_chars: list[str] = []
    for ch in candidate:
        if ch in _INVALID_BOOK_CHARS:
            cleaned_chars.append("_")
        elif ord(ch) < 32:
            continue
        else:
            cleaned_chars.append(ch)
    cleaned = "".join(cleaned_chars).strip(" .")
    if not cleaned:
        cleaned = "book"
    if not cleaned.lower().endswith(BOOK_EXTENSION):
        cleaned = f"{cleaned}.txt"
    return cleaned[-160:]


@dataclass(slots=True)
class LibraryBook:
    path: Path
    title: str
    added: float

    @property
    def file_name(self) -> str:
        return self.path.name


class BookLibrary:
    """Plain-text books stored in one directory with a ``library.json`` sidecar."""

    def __init__(self, root: Path) -> None:
        self.root = root

    @property
    def metadata_path(self) -> Path:
        return self.root / LIBRARY_FILENAME

    def import_book(self, file_name: str, content: str, title: str | None = None) -> LibraryBook:
        self.root.mkdir(parents=True, exist_ok=True)
        name = normalize_book_filename(file_name)
        path = self.root / name
        if path.exists():
            path.unlink()
        path.write_text(content, encoding="utf-8")
        entries = self._load_entries()
        book = LibraryBook(
            path=path,
            title=(title or "").strip() or Path(name).stem,
            added=time.time(),
        )
        entries[name] = {"file": name, "title": book.title, "added": book.added}
        self._save_entries(entries)
        return book

    def list_books(self, mode: str = "recent") -> list[LibraryBook]:
        normalized_mode = mode.lower().strip()
        if normalized_mode not in {"recent", "title"}:
            normalized_mode = "recent"
        if not self.root.is_dir():
            return []
        entries = self._load_entries()
        books: list[LibraryBook] = []
        for entry in self.root.iterdir():
            if not entry.is_file() or entry.name.startswith("."):
                continue
            if entry.suffix.lower() != BOOK_EXTENSION:
                continue
            record = entries.get(entry.name, {})
            title = record.get("title")
            added = record.get("added")
            if not isinstance(added, (int, float)):
                try:
                    added = entry.stat().st_mtime
                except OSError:
                    added = 0.0
            books.append(
                LibraryBook(
                    path=entry,
                    title=title.strip() if isinstance(title, str) and title.strip() else entry.stem,
                    added=float(added),
                )
            )
        if normalized_mode == "title":
            books.sort(key=lambda book: (book.title.casefold(), book.file_name.casefold()))
        else:
            books.sort(key=lambda book: (-book.added, book.title.casefold()))
        return books

    def delete_book(self, file_name: str) -> bool:
        name = normalize_book_filename(file_name)
        path = self.root / name
        entries = self._load_entries()
        removed_entry = entries.pop(name, None) is not None
        if removed_entry:
            self._save_entries(entries)
        if path.is_file():
            path.unlink()
            return True
        return removed_entry

    def _load_entries(self) -> dict[str, dict[str, object]]:
        try:
            raw = json.loads(self.metadata_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return {}
        books = raw.get("books") if isinstance(raw, dict) else None
        if not isinstance(books, list):
            return {}
        entries: dict[str, dict[str, object]] = {}
        for item in books:
            if isinstance(item, dict) and isinstance(item.get("file"), str):
                entries[item["file"]] = item
        return entries

    def _save_entries(self, entries: dict[str, dict[str, object]]) -> None:
        payload = {"books": sorted(entries.values(), key=lambda item: str(item.get("file")))}
        self.metadata_path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


__all__ = ["BookLibrary", "LibraryBook", "LIBRARY_FILENAME", "normalize_book_filename"]
