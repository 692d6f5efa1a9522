"""Tests for series progress aggregation."""

from types import SimpleNamespace

import pytest

from familyshelf.db.schemas import BookStatus, SeriesStatus
from familyshelf.series.progress import (
    build_series_book_display,
    build_series_detail,
    compute_next_series_order,
    compute_progress_percent,
    compute_series_progress,
    compute_series_total_books_from_books,
    get_series_cover_from_books,
)


@pytest.fixture
def harry_potter(make_series, make_family_book, make_member_book):
    """A three-book series where the member owns two."""
    series = [make_series("hp", "Harry Potter", total_books=7)]
    catalog = [
        make_family_book("hp1", series_id="hp", series_order=1),
        make_family_book("hp2", series_id="hp", series_order=2),
        make_family_book("hp3", series_id="hp", series_order=3),
    ]
    owned = [
        make_member_book("hp1", BookStatus.READ, series_id="hp", series_order=1),
        make_member_book("hp2", BookStatus.READING, series_id="hp", series_order=2),
    ]
    return series, catalog, owned


class TestTotalBooks:
    """Tests for compute_series_total_books_from_books."""

    def test_highest_order(self):
        """Test the total is the highest position seen."""
        orders = [1, 3, 5, None]
        result = compute_series_total_books_from_books(
            [SimpleNamespace(series_order=o) for o in orders]
        )
        assert result == 5

    def test_empty(self):
        """Test no books gives zero."""
        assert compute_series_total_books_from_books([]) == 0

    def test_no_positions(self):
        """Test books without positions give zero."""
        result = compute_series_total_books_from_books(
            [SimpleNamespace(series_order=None), SimpleNamespace(series_order=None)]
        )
        assert result == 0


class TestProgressPercent:
    """Tests for compute_progress_percent."""

    @pytest.mark.parametrize(
        "books_read,total,expected",
        [(1, 3, 33), (2, 3, 67), (1, 8, 13), (3, 3, 100), (0, 5, 0)],
    )
    def test_rounding(self, books_read, total, expected):
        """Test percentages round half up."""
        assert compute_progress_percent(books_read, total) == expected

    def test_zero_total(self):
        """Test a series with no known total is at zero percent."""
        assert compute_progress_percent(2, 0) == 0


class TestComputeSeriesProgress:
    """Tests for compute_series_progress."""

    def test_progress_for_owned_series(self, harry_potter):
        """Test counts, total and derived status for a partly read series."""
        series, catalog, owned = harry_potter

        [result] = compute_series_progress(series, catalog, owned)

        assert result.id == "hp"
        assert result.total_books == 3
        assert result.books_owned == 2
        assert result.books_read == 1
        assert result.progress_percent == 33
        assert result.status == SeriesStatus.READING
        assert result.status_override is None
        assert result.is_in_library is True
        assert [b.id for b in result.books_in_series] == ["hp1", "hp2"]

    def test_series_not_owned(self, make_series, make_family_book):
        """Test a series with no owned books is zeroed but still listed."""
        series = [make_series("lotr", "The Lord of the Rings")]
        catalog = [make_family_book("l1", series_id="lotr", series_order=1)]

        [result] = compute_series_progress(series, catalog, [])

        assert result.books_owned == 0
        assert result.books_read == 0
        assert result.progress_percent == 0
        assert result.is_in_library is False
        assert result.status == SeriesStatus.TO_READ
        assert result.total_books == 1

    def test_stored_status_override(self, harry_potter):
        """Test a stored status becomes the effective status."""
        series, catalog, owned = harry_potter
        series = [series[0].model_copy(update={"status": SeriesStatus.STOPPED})]

        [result] = compute_series_progress(series, catalog, owned)

        assert result.status == SeriesStatus.STOPPED
        assert result.status_override == SeriesStatus.STOPPED

    def test_input_order_preserved(self, make_series):
        """Test one result per series in input order."""
        series = [make_series("b", "Beta"), make_series("a", "Alpha")]

        result = compute_series_progress(series, [], [])

        assert [s.id for s in result] == ["b", "a"]

    def test_idempotent(self, harry_potter):
        """Test repeated runs on the same input give equal output."""
        series, catalog, owned = harry_potter

        first = compute_series_progress(series, catalog, owned)
        second = compute_series_progress(series, catalog, owned)

        assert first == second


class TestSeriesDetail:
    """Tests for the series detail overlay."""

    def test_display_sorted_with_membership(self, make_family_book, make_member_book):
        """Test catalog books are ordered by position with the member's status overlaid."""
        catalog = [
            make_family_book("x", series_id="s"),
            make_family_book("b3", series_id="s", series_order=3),
            make_family_book("b1", series_id="s", series_order=1),
        ]
        owned = [make_member_book("b1", BookStatus.READ, series_id="s", series_order=1)]

        display = build_series_book_display(catalog, owned)

        assert [b.id for b in display] == ["b1", "b3", "x"]
        assert display[0].is_in_library is True
        assert display[0].status == BookStatus.READ
        assert display[0].library_entry_id == "entry-b1"
        assert display[1].is_in_library is False
        assert display[1].status == BookStatus.TO_READ
        assert display[1].library_entry_id is None

    def test_detail(self, harry_potter):
        """Test the detail view lists every catalog book of the series."""
        series, catalog, owned = harry_potter
        progress = compute_series_progress(series, catalog, owned)

        detail = build_series_detail("hp", progress, catalog, owned)

        assert detail is not None
        assert detail.series.total_books == 3
        assert [b.id for b in detail.books] == ["hp1", "hp2", "hp3"]
        assert [b.is_in_library for b in detail.books] == [True, True, False]

    def test_unknown_series(self, harry_potter):
        """Test an unknown series gives None."""
        series, catalog, owned = harry_potter
        progress = compute_series_progress(series, catalog, owned)

        assert build_series_detail("nope", progress, catalog, owned) is None


class TestSeriesHelpers:
    """Tests for cover and next-position helpers."""

    def test_cover_first_in_series_order(self):
        """Test the cover comes from the earliest positioned book with one."""
        books = [
            SimpleNamespace(series_order=None, thumbnail_url="late.jpg"),
            SimpleNamespace(series_order=2, thumbnail_url="two.jpg"),
            SimpleNamespace(series_order=1, thumbnail_url=None),
        ]
        assert get_series_cover_from_books(books) == "two.jpg"

    def test_cover_missing(self):
        """Test no thumbnails gives None."""
        assert get_series_cover_from_books([SimpleNamespace(series_order=1, thumbnail_url=None)]) is None

    def test_next_series_order(self):
        """Test the next position is the count plus one."""
        assert compute_next_series_order([]) == 1
        assert compute_next_series_order(None) == 1
        assert compute_next_series_order([object(), object(), object()]) == 4
