"""Terminal rendering of cards, notices and game status."""

from typing import Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.catalog import ContentCatalog
from ..core.engine import DrawResult
from ..core.errors import Notice, NoticeKind
from ..core.schemas import Category, SessionSnapshot
from ..core.session import Session

CATEGORY_TITLES = {Category.TRUTH: "TRUTH", Category.DARE: "DARE"}

LIGHT_STYLES = {Category.TRUTH: "bold blue", Category.DARE: "bold red", "notice": "yellow", "border": "cyan"}
DARK_STYLES = {Category.TRUTH: "bold bright_cyan", Category.DARE: "bold bright_magenta", "notice": "bright_yellow", "border": "grey70"}

WARNING_KINDS = {
    NoticeKind.CATALOG_UNAVAILABLE,
    NoticeKind.LOAD_FAILED,
    NoticeKind.EMPTY_SELECTION,
    NoticeKind.EMPTY_CATEGORY,
    NoticeKind.PASS_UNAVAILABLE,
    NoticeKind.NO_SESSION,
    NoticeKind.RESUME_FAILED,
}


class Narrator:
    """Prints engine output for a human player."""

    def __init__(self, *, dark_mode: bool = False, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.styles = DARK_STYLES if dark_mode else LIGHT_STYLES

    def card(self, result: DrawResult) -> None:
        title = CATEGORY_TITLES[result.category]
        if result.is_pass:
            title = f"{title} (pass)"
        body = Text(result.card, justify="center")
        self.console.print(
            Panel(
                body,
                title=Text(title, style=self.styles[result.category]),
                subtitle=f"{result.package_name}, round {result.round}",
                border_style=self.styles["border"],
                padding=(1, 2),
            )
        )

    def notice(self, notice: Notice) -> None:
        style = "bold red" if notice.kind in WARNING_KINDS else self.styles["notice"]
        self.console.print(Text(notice.message, style=style))

    def packages(self, catalog: ContentCatalog, selected: Iterable[int] = ()) -> None:
        chosen = set(selected)
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("", width=3)
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Package")
        table.add_column("Description")
        for descriptor in catalog:
            mark = "[x]" if descriptor.id in chosen else "[ ]"
            table.add_row(mark, str(descriptor.id), descriptor.name, descriptor.description)
        self.console.print(table)

    def status(self, session: Session) -> None:
        last = session.last_draw
        last_label = CATEGORY_TITLES[last.category] if last else "-"
        self.console.print(f"[bold]Round:[/bold] {session.current_round}   [bold]Last card:[/bold] {last_label}")
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Package")
        table.add_column("Truth left", justify="right")
        table.add_column("Dare left", justify="right")
        for deck in session.active_decks():
            table.add_row(
                str(deck.id),
                deck.name,
                f"{deck.remaining_count(Category.TRUTH)}/{deck.total_count(Category.TRUTH)}",
                f"{deck.remaining_count(Category.DARE)}/{deck.total_count(Category.DARE)}",
            )
        self.console.print(table)

    def saved_game(self, snapshot: SessionSnapshot) -> None:
        last_label = CATEGORY_TITLES[snapshot.last_card_type] if snapshot.last_card_type else "-"
        self.console.print(
            f"A saved game was found: round {snapshot.current_round}, last card: {last_label}."
        )
