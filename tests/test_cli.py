"""Tests for the CLI interface."""

import pytest
from rich.console import Console
from typer.testing import CliRunner

from familyshelf import cli
from familyshelf.cli import app
from familyshelf.config import reset_config
from familyshelf.db.schemas import BookStatus, FamilyCreate, MemberCreate, SeriesCreate, SeriesStatus
from familyshelf.db.sqlite import get_db, reset_db
from familyshelf.library.manager import LibraryManager
from familyshelf.library.schemas import AddBookRequest


@pytest.fixture(autouse=True)
def setup_test_db(monkeypatch, tmp_path):
    """Point the CLI at a fresh database file for each test."""
    for name in ("FAMILYSHELF_FAMILY_ID", "FAMILYSHELF_MEMBER_ID", "FAMILYSHELF_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FAMILYSHELF_DB_PATH", str(tmp_path / "familyshelf.db"))
    monkeypatch.setattr(cli, "console", Console(width=200))
    reset_db()
    reset_config()

    yield

    reset_db()
    reset_config()


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def shelf():
    """A family with one member, stored in the CLI's database."""
    db = get_db()
    family = db.create_family(FamilyCreate(name="The Nakamuras", owner_id="uid-1"))
    member = db.create_member(family.id, MemberCreate(name="Yui"))
    return db, family, member


def selection(family, member=None):
    args = ["--family", family.id]
    if member:
        args += ["--member", member.id]
    return args


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner):
        """Test that help command works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "bookshelf" in result.stdout

    def test_version(self, runner: CliRunner):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_missing_family(self, runner: CliRunner):
        """Test commands needing a family fail without one."""
        result = runner.invoke(app, ["member", "list"])
        assert result.exit_code == 1
        assert "No family selected" in result.stdout


class TestFamilyCommands:
    """Tests for family and member commands."""

    def test_family_create(self, runner: CliRunner):
        """Test creating a family."""
        result = runner.invoke(app, ["family", "create", "The Nakamuras", "--owner", "uid-7"])

        assert result.exit_code == 0
        assert "Family Created" in result.stdout
        assert get_db().get_family_by_owner("uid-7").name == "The Nakamuras"

    def test_family_show(self, runner: CliRunner, shelf):
        """Test showing a family with its members."""
        _, family, _ = shelf

        result = runner.invoke(app, ["family", "show", *selection(family)])

        assert result.exit_code == 0
        assert "The Nakamuras" in result.stdout
        assert "Yui" in result.stdout

    def test_family_show_not_found(self, runner: CliRunner):
        """Test an unknown family."""
        result = runner.invoke(app, ["family", "show", "--family", "missing"])
        assert result.exit_code == 1
        assert "Family not found" in result.stdout

    def test_member_add_and_list(self, runner: CliRunner, shelf):
        """Test adding a member then listing members."""
        _, family, _ = shelf

        result = runner.invoke(app, ["member", "add", "Haru", "--color", "#224466", *selection(family)])
        assert result.exit_code == 0
        assert "Added member Haru" in result.stdout

        result = runner.invoke(app, ["member", "list", *selection(family)])
        assert "Haru" in result.stdout
        assert "Yui" in result.stdout

    def test_selection_from_env(self, runner: CliRunner, shelf, monkeypatch):
        """Test the family falls back to the environment."""
        _, family, _ = shelf
        monkeypatch.setenv("FAMILYSHELF_FAMILY_ID", family.id)
        reset_config()

        result = runner.invoke(app, ["member", "list"])

        assert result.exit_code == 0
        assert "Yui" in result.stdout


class TestBookCommands:
    """Tests for adding books and changing statuses."""

    def test_add(self, runner: CliRunner, shelf):
        """Test adding a book."""
        db, family, member = shelf

        result = runner.invoke(app, [
            "add", "Kitchen", "--author", "Banana Yoshimoto", "--status", "reading",
            *selection(family, member),
        ])

        assert result.exit_code == 0
        assert "Added: Kitchen" in result.stdout
        [entry] = db.get_library_entries(family.id, member.id)
        assert entry.status == BookStatus.READING

    def test_add_requires_member(self, runner: CliRunner, shelf):
        """Test adding without a member fails."""
        _, family, _ = shelf

        result = runner.invoke(app, ["add", "Kitchen", "--author", "Banana Yoshimoto", *selection(family)])

        assert result.exit_code == 1
        assert "No member selected" in result.stdout

    def test_add_order_without_series(self, runner: CliRunner, shelf):
        """Test --order needs --series."""
        _, family, member = shelf

        result = runner.invoke(app, [
            "add", "Kitchen", "--author", "B", "--order", "2", *selection(family, member),
        ])

        assert result.exit_code == 1

    def test_status_cycles(self, runner: CliRunner, shelf):
        """Test omitting the status advances to the next one."""
        db, family, member = shelf
        added = LibraryManager(db).add_book(family.id, member.id, AddBookRequest(title="Kitchen", author="B"))

        result = runner.invoke(app, ["status", added.library_entry_id, *selection(family, member)])

        assert result.exit_code == 0
        assert "Status is now reading" in result.stdout

    def test_status_set(self, runner: CliRunner, shelf):
        """Test setting an explicit status."""
        db, family, member = shelf
        added = LibraryManager(db).add_book(family.id, member.id, AddBookRequest(title="Kitchen", author="B"))

        result = runner.invoke(app, ["status", added.library_entry_id, "read", *selection(family, member)])

        assert result.exit_code == 0
        assert db.get_library_entry(family.id, member.id, added.library_entry_id).status == BookStatus.READ

    def test_status_unknown_entry(self, runner: CliRunner, shelf):
        """Test an unknown entry fails."""
        _, family, member = shelf

        result = runner.invoke(app, ["status", "missing", *selection(family, member)])

        assert result.exit_code == 1
        assert "Library entry not found" in result.stdout

    def test_remove(self, runner: CliRunner, shelf):
        """Test removing a book from the library."""
        db, family, member = shelf
        added = LibraryManager(db).add_book(family.id, member.id, AddBookRequest(title="Kitchen", author="B"))

        result = runner.invoke(app, ["remove", added.library_entry_id, *selection(family, member)])

        assert result.exit_code == 0
        assert db.get_library_entries(family.id, member.id) == []


class TestBooksCommand:
    """Tests for the grouped books listing."""

    @pytest.fixture
    def library(self, shelf):
        db, family, member = shelf
        series = db.create_series(family.id, SeriesCreate(name="Moomins"))
        manager = LibraryManager(db)
        for order, status in enumerate([BookStatus.READ, BookStatus.READING], start=1):
            manager.add_book(family.id, member.id, AddBookRequest(
                title=f"Moomin {order}", author="Tove Jansson", status=status,
                series_id=series.id, series_order=order,
            ))
        manager.add_book(family.id, member.id, AddBookRequest(
            title="The Summer Book", author="Tove Jansson", status=BookStatus.READ,
        ))
        return family, member, series

    def test_books_grouped(self, runner: CliRunner, library):
        """Test series are collapsed into one row."""
        family, member, _ = library

        result = runner.invoke(app, ["books", *selection(family, member)])

        assert result.exit_code == 0
        assert "Moomins (series)" in result.stdout
        assert "The Summer Book" in result.stdout
        assert "Moomin 1" not in result.stdout
        assert "3 books" in result.stdout

    def test_books_status_filter(self, runner: CliRunner, library):
        """Test a reading series is hidden under the read filter."""
        family, member, _ = library

        result = runner.invoke(app, ["books", "--status", "read", *selection(family, member)])

        assert result.exit_code == 0
        assert "Moomins" not in result.stdout
        assert "The Summer Book" in result.stdout

    def test_books_invalid_status(self, runner: CliRunner, library):
        """Test an unknown status is rejected."""
        family, member, _ = library

        result = runner.invoke(app, ["books", "--status", "finished", *selection(family, member)])

        assert result.exit_code == 1
        assert "Invalid status" in result.stdout


class TestSeriesCommands:
    """Tests for series commands."""

    @pytest.fixture
    def series(self, shelf):
        db, family, member = shelf
        series = db.create_series(family.id, SeriesCreate(name="Moomins"))
        manager = LibraryManager(db)
        for order in (1, 2, 3):
            added = manager.add_book(family.id, member.id, AddBookRequest(
                title=f"Moomin {order}", author="Tove Jansson",
                series_id=series.id, series_order=order,
            ))
            if order == 1:
                manager.remove_book(family.id, member.id, added.library_entry_id)
        return series

    def test_series_create(self, runner: CliRunner, shelf):
        """Test creating a series."""
        db, family, member = shelf

        result = runner.invoke(app, ["series", "create", "Millennium", *selection(family, member)])

        assert result.exit_code == 0
        assert "Series Created" in result.stdout
        [created] = db.get_series_list(family.id)
        assert created.created_by == member.id

    def test_series_list(self, runner: CliRunner, shelf, series):
        """Test listing series with progress."""
        _, family, member = shelf

        result = runner.invoke(app, ["series", "list", *selection(family, member)])

        assert result.exit_code == 0
        assert "Moomins" in result.stdout
        assert "0/3 (0%)" in result.stdout

    def test_series_list_other_tab(self, runner: CliRunner, shelf, series):
        """Test the not-in-library tab."""
        _, family, member = shelf

        result = runner.invoke(app, ["series", "list", "--tab", "notInLibrary", *selection(family, member)])

        assert result.exit_code == 0
        assert "No series found" in result.stdout

    def test_series_list_invalid_tab(self, runner: CliRunner, shelf):
        """Test an unknown tab is rejected."""
        _, family, member = shelf

        result = runner.invoke(app, ["series", "list", "--tab", "wishlist", *selection(family, member)])

        assert result.exit_code == 1
        assert "Invalid tab" in result.stdout

    def test_series_show(self, runner: CliRunner, shelf, series):
        """Test showing every book of a series."""
        _, family, member = shelf

        result = runner.invoke(app, ["series", "show", series.id, *selection(family, member)])

        assert result.exit_code == 0
        assert "Moomin 1" in result.stdout
        assert "Moomin 3" in result.stdout
        assert "derived" in result.stdout

    def test_series_show_missing(self, runner: CliRunner, shelf):
        """Test an unknown series."""
        _, family, member = shelf

        result = runner.invoke(app, ["series", "show", "missing", *selection(family, member)])

        assert result.exit_code == 1
        assert "Series not found" in result.stdout

    def test_series_add_to_library(self, runner: CliRunner, shelf, series):
        """Test adding the missing books of a series."""
        db, family, member = shelf

        result = runner.invoke(app, ["series", "add-to-library", series.id, *selection(family, member)])

        assert result.exit_code == 0
        assert "Added 1 books (2 already in library)" in result.stdout
        assert len(db.get_library_entries(family.id, member.id)) == 3

    def test_series_recompute(self, runner: CliRunner, shelf, series):
        """Test storing the derived total."""
        db, family, _ = shelf

        result = runner.invoke(app, ["series", "recompute", series.id, *selection(family)])

        assert result.exit_code == 0
        assert db.get_series(family.id, series.id).total_books == 3

    def test_series_set_status(self, runner: CliRunner, shelf, series):
        """Test setting and clearing the status override."""
        db, family, _ = shelf

        result = runner.invoke(app, ["series", "set-status", series.id, "stopped", *selection(family)])
        assert result.exit_code == 0
        assert db.get_series(family.id, series.id).status == SeriesStatus.STOPPED

        result = runner.invoke(app, ["series", "set-status", series.id, "none", *selection(family)])
        assert result.exit_code == 0
        assert db.get_series(family.id, series.id).status is None

    def test_series_set_status_invalid(self, runner: CliRunner, shelf, series):
        """Test an unknown status is rejected."""
        _, family, _ = shelf

        result = runner.invoke(app, ["series", "set-status", series.id, "paused", *selection(family)])

        assert result.exit_code == 1
        assert "Invalid status" in result.stdout
