"""Tab, search and status filtering for series lists."""

from typing import Optional, Sequence, TypeVar, Union

from ..db.schemas import ALL_STATUSES, SeriesStatus
from .schemas import LibraryTab

T = TypeVar("T")


def filter_series(
    series: Sequence[T],
    active_tab: Union[LibraryTab, str],
    search_query: str,
    status_filter: Optional[Union[SeriesStatus, str]] = None,
) -> list[T]:
    """Filter series by library tab, search query and status.

    A non-empty search matches names across both tabs and ignores the tab and
    the status filter. Otherwise series are split by is_in_library, and the
    in-library tab can be narrowed further to one status.

    Args:
        series: Series with name, is_in_library and status attributes
        active_tab: Tab currently shown
        search_query: Free text, matched case-insensitively as a substring
        status_filter: Status to keep on the in-library tab; None or 'all' keeps all

    Returns:
        Matching series in input order
    """
    query = search_query.strip().casefold()
    if query:
        return [s for s in series if query in s.name.casefold()]

    if LibraryTab(active_tab) == LibraryTab.NOT_IN_LIBRARY:
        return [s for s in series if not s.is_in_library]

    in_library = [s for s in series if s.is_in_library]
    if status_filter is None or status_filter == ALL_STATUSES:
        return in_library

    wanted = SeriesStatus(status_filter)
    return [s for s in in_library if getattr(s, "status", None) == wanted]
