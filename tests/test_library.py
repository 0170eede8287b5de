from __future__ import annotations

import json
from pathlib import Path

from wifibook.library import LIBRARY_FILENAME, BookLibrary, normalize_book_filename


def test_import_book_writes_text_and_sidecar(tmp_path: Path) -> None:
    library = BookLibrary(tmp_path / "books")
    book = library.import_book("三体.txt", "第一章\n内容")
    assert book.path == tmp_path / "books" / "三体.txt"
    assert book.path.read_text(encoding="utf-8") == "第一章\n内容"
    assert book.title == "三体"
    payload = json.loads((tmp_path / "books" / LIBRARY_FILENAME).read_text(encoding="utf-8"))
    assert payload["books"][0]["file"] == "三体.txt"
    assert payload["books"][0]["title"] == "三体"


def test_import_book_overwrites_existing(tmp_path: Path) -> None:
    library = BookLibrary(tmp_path)
    library.import_book("a.txt", "old")
    library.import_book("a.txt", "new")
    assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "new"
    assert [book.file_name for book in library.list_books()] == ["a.txt"]


def test_normalize_book_filename() -> None:
    assert normalize_book_filename("../../etc/passwd") == "passwd.txt"
    assert normalize_book_filename("C:\\Users\\me\\novel.txt") == "novel.txt"
    assert normalize_book_filename('a<b>"c".txt') == "a_b__c_.txt"
    assert normalize_book_filename("notes.md") == "notes.md.txt"
    assert normalize_book_filename("  ") == "book.txt"
    assert normalize_book_filename(None) == "book.txt"


def test_list_books_sorting_and_untracked_files(tmp_path: Path) -> None:
    library = BookLibrary(tmp_path)
    library.import_book("beta.txt", "b", title="Beta")
    library.import_book("alpha.txt", "a", title="Alpha")
    (tmp_path / "gamma.txt").write_text("g", encoding="utf-8")
    (tmp_path / "cover.png").write_bytes(b"\x89PNG")
    (tmp_path / "notes.md").write_text("n", encoding="utf-8")

    titles = [book.title for book in library.list_books("title")]
    assert titles == ["Alpha", "Beta", "gamma"]
    recent = library.list_books("recent")
    assert {book.title for book in recent} == {"Alpha", "Beta", "gamma"}
    assert recent.index(next(b for b in recent if b.title == "Alpha")) < recent.index(
        next(b for b in recent if b.title == "Beta")
    )


def test_corrupt_sidecar_is_treated_as_empty(tmp_path: Path) -> None:
    (tmp_path / LIBRARY_FILENAME).write_text("{not json", encoding="utf-8")
    (tmp_path / "book.txt").write_text("x", encoding="utf-8")
    library = BookLibrary(tmp_path)
    assert [book.title for book in library.list_books()] == ["book"]
    library.import_book("other.txt", "y")
    assert {book.file_name for book in library.list_books()} == {"book.txt", "other.txt"}


def test_delete_book(tmp_path: Path) -> None:
    library = BookLibrary(tmp_path)
    library.import_book("a.txt", "x")
    assert library.delete_book("a.txt") is True
    assert not (tmp_path / "a.txt").exists()
    assert library.list_books() == []
    assert library.delete_book("a.txt") is False


def test_missing_root_lists_nothing(tmp_path: Path) -> None:
    assert BookLibrary(tmp_path / "absent").list_books() == []
