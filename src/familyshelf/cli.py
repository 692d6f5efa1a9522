"""Command-line interface for familyshelf.

Built with Typer for commands and Rich for beautiful output.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .booklist import SeriesListItem
from .config import configure_logging, get_config
from .db import get_db
from .db.schemas import ALL_STATUSES, BookStatus, MemberCreate, SeriesCreate, SeriesStatus
from .session import LibrarySession

# Create the main app
app = typer.Typer(
    name="familyshelf",
    help="Track your family's bookshelf and everyone's reading progress.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
family_app = typer.Typer(help="Create and inspect families.")
app.add_typer(family_app, name="family")

member_app = typer.Typer(help="Manage family members.")
app.add_typer(member_app, name="member")

series_app = typer.Typer(help="Manage book series and reading progress.")
app.add_typer(series_app, name="series")

# Rich console for pretty output
console = Console()

STATUS_STYLES = {
    "to-read": "dim",
    "reading": "yellow",
    "read": "green",
    "stopped": "red",
}


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def format_status(status) -> str:
    """Colour a status value for display."""
    value = getattr(status, "value", status)
    style = STATUS_STYLES.get(value, "white")
    return f"[{style}]{value}[/{style}]"


def resolve_family(family_id: Optional[str]) -> str:
    """Family from the option, else from config. Exits when neither is set."""
    family_id = family_id or get_config().family_id
    if not family_id:
        print_error("No family selected. Use --family or set FAMILYSHELF_FAMILY_ID.")
        raise typer.Exit(1)
    return family_id


def resolve_member(member_id: Optional[str]) -> str:
    """Member from the option, else from config. Exits when neither is set."""
    member_id = member_id or get_config().member_id
    if not member_id:
        print_error("No member selected. Use --member or set FAMILYSHELF_MEMBER_ID.")
        raise typer.Exit(1)
    return member_id


def open_session(family_id: str, member_id: Optional[str]) -> LibrarySession:
    """Open a library session with the given selection."""
    session = LibrarySession(get_db())
    session.select(family_id, member_id)
    return session


FamilyOption = typer.Option(None, "--family", "-f", help="Family ID")
MemberOption = typer.Option(None, "--member", "-m", help="Member ID")


@app.callback()
def main() -> None:
    """Track your family's bookshelf and everyone's reading progress."""
    config = get_config()
    for problem in config.validate():
        print_warning(problem)
    configure_logging(config.log_level)


@app.command()
def version() -> None:
    """Show the version."""
    console.print(f"familyshelf {__version__}")


# ============================================================================
# Family Commands
# ============================================================================


@family_app.command("create")
def family_create(
    name: str = typer.Argument(..., help="Family name"),
    owner: str = typer.Option(..., "--owner", "-o", help="Auth user ID of the owner"),
) -> None:
    """Create a new family."""
    from .family import FamilyManager

    family = FamilyManager(get_db()).create_family(name, owner)
    console.print(Panel(
        f"[bold]{family.name}[/bold]\nOwner: {family.owner_id}",
        title="[green]Family Created[/green]",
    ))
    console.print(f"\n[dim]ID: {family.id}[/dim]")


@family_app.command("show")
def family_show(family: Optional[str] = FamilyOption) -> None:
    """Show a family and its members."""
    from .family import FamilyManager

    family_id = resolve_family(family)
    manager = FamilyManager(get_db())

    result = manager.get_family(family_id)
    if not result:
        print_error(f"Family not found: {family_id}")
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold]{result.name}[/bold]\n"
        f"Owner: {result.owner_id}\n"
        f"Created: {result.created_at:%Y-%m-%d}",
        title="[blue]Family[/blue]",
    ))

    members = manager.list_members(family_id)
    if not members:
        print_info("No members yet")
        return

    table = Table(title="Members")
    table.add_column("Name", style="cyan")
    table.add_column("Color")
    table.add_column("ID", style="dim")
    for member in members:
        table.add_row(member.name, member.color, member.id)
    console.print(table)


# ============================================================================
# Member Commands
# ============================================================================


@member_app.command("add")
def member_add(
    name: str = typer.Argument(..., help="Member name"),
    color: str = typer.Option("#8B5A2B", "--color", "-c", help="Display color"),
    family: Optional[str] = FamilyOption,
) -> None:
    """Add a member to a family."""
    from .family import FamilyManager

    family_id = resolve_family(family)
    member = FamilyManager(get_db()).add_member(family_id, MemberCreate(name=name, color=color))
    if not member:
        print_error(f"Family not found: {family_id}")
        raise typer.Exit(1)

    print_success(f"Added member {member.name}")
    console.print(f"[dim]ID: {member.id}[/dim]")


@member_app.command("list")
def member_list(family: Optional[str] = FamilyOption) -> None:
    """List the members of a family."""
    from .family import FamilyManager

    members = FamilyManager(get_db()).list_members(resolve_family(family))
    if not members:
        print_info("No members found")
        return

    table = Table(title=f"Members ({len(members)})")
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="dim")
    for member in members:
        table.add_row(member.name, member.id)
    console.print(table)


# ============================================================================
# Book Commands
# ============================================================================


@app.command()
def add(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Option(..., "--author", "-a", help="Author name"),
    status: BookStatus = typer.Option(BookStatus.TO_READ, "--status", "-s", help="Reading status"),
    series: Optional[str] = typer.Option(None, "--series", help="Series ID"),
    order: Optional[int] = typer.Option(None, "--order", help="Position in series"),
    family: Optional[str] = FamilyOption,
    member: Optional[str] = MemberOption,
) -> None:
    """Add a book to a member's library."""
    from .library import AddBookRequest, LibraryManager

    family_id = resolve_family(family)
    member_id = resolve_member(member)

    if order is not None and not series:
        print_error("--order requires --series")
        raise typer.Exit(1)

    result = LibraryManager(get_db()).add_book(family_id, member_id, AddBookRequest(
        title=title,
        author=author,
        status=status,
        series_id=series,
        series_order=order,
    ))

    print_success(f"Added: {title}")
    if not result.is_new_book:
        print_info("Book was already in the family catalog")
    console.print(f"[dim]Entry ID: {result.library_entry_id}[/dim]")


@app.command()
def status(
    entry_id: str = typer.Argument(..., help="Library entry ID"),
    new_status: Optional[BookStatus] = typer.Argument(None, help="New status; cycles when omitted"),
    family: Optional[str] = FamilyOption,
    member: Optional[str] = MemberOption,
) -> None:
    """Set or cycle the reading status of a book."""
    from .library import LibraryManager

    family_id = resolve_family(family)
    member_id = resolve_member(member)
    manager = LibraryManager(get_db())

    try:
        if new_status is None:
            entry = manager.cycle_book_status(family_id, member_id, entry_id)
        else:
            entry = manager.update_book_status(family_id, member_id, entry_id, new_status)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Status is now {entry.status.value}")


@app.command()
def remove(
    entry_id: str = typer.Argument(..., help="Library entry ID"),
    family: Optional[str] = FamilyOption,
    member: Optional[str] = MemberOption,
) -> None:
    """Remove a book from a member's library."""
    from .library import LibraryManager

    try:
        LibraryManager(get_db()).remove_book(
            resolve_family(family), resolve_member(member), entry_id
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Removed from library")


@app.command()
def books(
    status: str = typer.Option(ALL_STATUSES, "--status", "-s", help="all, to-read, reading or read"),
    family: Optional[str] = FamilyOption,
    member: Optional[str] = MemberOption,
) -> None:
    """List a member's books with series collapsed into one row."""
    valid = [ALL_STATUSES] + [s.value for s in BookStatus]
    if status not in valid:
        print_error(f"Invalid status. Valid: {', '.join(valid)}")
        raise typer.Exit(1)

    with open_session(resolve_family(family), resolve_member(member)) as session:
        items = session.book_list(status)
        counts = session.books.counts()

    if not items:
        console.print("[dim]No books found.[/dim]")
        return

    table = Table(title="Books", show_header=True, header_style="bold magenta")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Status")
    table.add_column("Progress", justify="center")
    table.add_column("ID", style="dim")

    for item in items:
        if isinstance(item, SeriesListItem):
            s = item.series
            table.add_row(
                f"[bold]{s.name}[/bold] (series)",
                ", ".join(sorted({b.author for b in item.books})),
                format_status(s.status),
                f"{s.books_read}/{s.total_books} ({s.progress_percent}%)",
                s.id,
            )
        else:
            book = item.book
            table.add_row(
                book.title,
                book.author,
                format_status(book.status),
                "-",
                book.library_entry_id,
            )

    console.print(table)
    console.print(
        f"[dim]{counts.all} books: {counts.to_read} to read, "
        f"{counts.reading} reading, {counts.read} read[/dim]"
    )


# ============================================================================
# Series Commands
# ============================================================================


@series_app.command("create")
def series_create(
    name: str = typer.Argument(..., help="Series name"),
    thumbnail: Optional[str] = typer.Option(None, "--thumbnail", help="Cover image URL"),
    family: Optional[str] = FamilyOption,
    member: Optional[str] = MemberOption,
) -> None:
    """Create a new series."""
    from .series import SeriesManager

    family_id = resolve_family(family)
    created_by = member or get_config().member_id

    result = SeriesManager(get_db()).create_series(
        family_id, SeriesCreate(name=name, thumbnail_url=thumbnail), created_by
    )
    console.print(Panel(f"[bold]{result.name}[/bold]", title="[green]Series Created[/green]"))
    console.print(f"\n[dim]ID: {result.id}[/dim]")


@series_app.command("list")
def series_list(
    tab: str = typer.Option("inLibrary", "--tab", "-t", help="inLibrary or notInLibrary"),
    search: str = typer.Option("", "--search", "-q", help="Search by name across both tabs"),
    status: str = typer.Option(ALL_STATUSES, "--status", "-s", help="Filter the inLibrary tab"),
    family: Optional[str] = FamilyOption,
    member: Optional[str] = MemberOption,
) -> None:
    """List series with the member's progress."""
    from .series import LibraryTab

    try:
        active_tab = LibraryTab(tab)
    except ValueError:
        valid = ", ".join(t.value for t in LibraryTab)
        print_error(f"Invalid tab. Valid: {valid}")
        raise typer.Exit(1)

    if status != ALL_STATUSES and status not in [s.value for s in SeriesStatus]:
        valid = ", ".join([ALL_STATUSES] + [s.value for s in SeriesStatus])
        print_error(f"Invalid status. Valid: {valid}")
        raise typer.Exit(1)

    with open_session(resolve_family(family), resolve_member(member)) as session:
        series_list = session.series.filtered(active_tab, search, status)

    if not series_list:
        print_info("No series found")
        return

    table = Table(title=f"Series ({len(series_list)} found)")
    table.add_column("Name")
    table.add_column("Progress")
    table.add_column("Status")
    table.add_column("Owned", justify="right")
    table.add_column("ID", style="dim")

    for s in series_list:
        table.add_row(
            s.name[:35] + "..." if len(s.name) > 35 else s.name,
            f"{s.books_read}/{s.total_books} ({s.progress_percent}%)",
            format_status(s.status),
            str(s.books_owned),
            s.id,
        )

    console.print(table)


@series_app.command("show")
def series_show(
    series_id: str = typer.Argument(..., help="Series ID"),
    family: Optional[str] = FamilyOption,
    member: Optional[str] = MemberOption,
) -> None:
    """Show a series with every book in it."""
    with open_session(resolve_family(family), resolve_member(member)) as session:
        detail = session.series.detail(series_id)

    if not detail:
        print_error(f"Series not found: {series_id}")
        raise typer.Exit(1)

    series = detail.series
    override = series.status_override.value if series.status_override else "derived"
    console.print(Panel(
        f"[bold]{series.name}[/bold]\n\n"
        f"Status: {format_status(series.status)} ({override})\n"
        f"Progress: {series.books_read} read / {series.total_books} total "
        f"({series.progress_percent}%)\n"
        f"Books Owned: {series.books_owned}",
        title="[blue]Series Details[/blue]",
    ))

    if detail.books:
        table = Table(title="Books in Series")
        table.add_column("#", justify="right")
        table.add_column("Title")
        table.add_column("Status")
        table.add_column("Owned")

        for book in detail.books:
            table.add_row(
                str(book.series_order) if book.series_order is not None else "-",
                book.title,
                format_status(book.status) if book.is_in_library else "[dim]-[/dim]",
                "[green]Yes[/green]" if book.is_in_library else "[dim]No[/dim]",
            )

        console.print(table)

    console.print(f"\n[dim]ID: {series.id}[/dim]")


@series_app.command("add-to-library")
def series_add_to_library(
    series_id: str = typer.Argument(..., help="Series ID"),
    status: BookStatus = typer.Option(BookStatus.TO_READ, "--status", "-s", help="Status for added books"),
    family: Optional[str] = FamilyOption,
    member: Optional[str] = MemberOption,
) -> None:
    """Add every book of a series to a member's library."""
    from .library import LibraryManager

    result = LibraryManager(get_db()).add_series_to_library(
        resolve_family(family), resolve_member(member), series_id, status
    )

    if result.added == 0 and result.skipped == 0:
        print_warning("Series has no books in the family catalog")
        return

    print_success(f"Added {result.added} books ({result.skipped} already in library)")


@series_app.command("recompute")
def series_recompute(
    series_id: str = typer.Argument(..., help="Series ID"),
    family: Optional[str] = FamilyOption,
) -> None:
    """Recompute a series' total book count from the catalog."""
    from .series import SeriesManager

    result = SeriesManager(get_db()).recompute_series_total_books(resolve_family(family), series_id)
    if not result:
        print_error(f"Series not found: {series_id}")
        raise typer.Exit(1)

    print_success(f"{result.name} has {result.total_books} books")


@series_app.command("set-status")
def series_set_status(
    series_id: str = typer.Argument(..., help="Series ID"),
    status: str = typer.Argument(..., help="to-read, reading, read, stopped or none"),
    family: Optional[str] = FamilyOption,
) -> None:
    """Set a series' status, or 'none' to derive it from its books."""
    from .series import SeriesManager

    if status.lower() == "none":
        new_status = None
    else:
        try:
            new_status = SeriesStatus(status.lower())
        except ValueError:
            valid = ", ".join([s.value for s in SeriesStatus] + ["none"])
            print_error(f"Invalid status. Valid: {valid}")
            raise typer.Exit(1)

    result = SeriesManager(get_db()).set_series_status(resolve_family(family), series_id, new_status)
    if not result:
        print_error(f"Series not found: {series_id}")
        raise typer.Exit(1)

    if new_status is None:
        print_success(f"{result.name} status is now derived from its books")
    else:
        print_success(f"{result.name} status set to {new_status.value}")


if __name__ == "__main__":
    app()
