"""Book status cycling."""

from typing import Union

from ..db.schemas import BookStatus

STATUS_CYCLE: tuple[BookStatus, ...] = (
    BookStatus.TO_READ,
    BookStatus.READING,
    BookStatus.READ,
)


def next_status(current: Union[BookStatus, str]) -> BookStatus:
    """Get the next status in the cycle: to-read → reading → read → to-read."""
    index = STATUS_CYCLE.index(BookStatus(current))
    return STATUS_CYCLE[(index + 1) % len(STATUS_CYCLE)]
