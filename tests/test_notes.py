"""Tests for topic_explorer.notes."""

from topic_explorer.notes import FileNoteStore, NoteStore, format_entry, tag_title


class TestFormatting:
    def test_tag_title(self):
        assert tag_title("Entropy") == "Entropy !AI GENERATED!"

    def test_entry_layout(self):
        assert format_entry("T", "line 1\nline 2") == (
            "Title: T\nType: AI Topic Explorer\nEntry:\nline 1\nline 2\n---"
        )


class TestFileNoteStore:
    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "deep" / "dir" / "notes.txt"
        FileNoteStore(path).append("T", "B")
        assert path.read_text(encoding="utf-8") == "Title: T\nType: AI Topic Explorer\nEntry:\nB\n---\n"

    def test_appends_entries_in_order(self, tmp_path):
        path = tmp_path / "notes.txt"
        store = FileNoteStore(path)
        store.append("first", "1")
        store.append("second", "2")
        text = path.read_text(encoding="utf-8")
        assert text.index("Title: first") < text.index("Title: second")
        assert text.count("---\n") == 2

    def test_write_failure_is_logged(self, tmp_path, caplog):
        # A directory where the file should be makes open() fail.
        path = tmp_path / "notes.txt"
        path.mkdir()
        with caplog.at_level("WARNING", logger="topic_explorer"):
            FileNoteStore(path).append("T", "B")
        assert "Could not append entry" in caplog.text

    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(FileNoteStore(tmp_path / "n.txt"), NoteStore)
