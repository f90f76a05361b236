"""Rich-powered console output for flowcanvas."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from flowcanvas.canvas.selection import ViewMode
from flowcanvas.canvas.session import Session
from flowcanvas.graph.linearize import Line, LineKind
from flowcanvas.models import NodeKind

KIND_STYLES = {
    NodeKind.START: "bold cyan",
    NodeKind.PROCESS: "white",
    NodeKind.DECISION: "magenta",
    NodeKind.END: "bold blue",
}

GRAPH_HELP = "↑/↓ navigate | enter/c comment | tab review | q quit"
REVIEW_HELP = "↑/↓ navigate | enter edit | tab flowchart | q quit"
EDIT_HELP = "(Enter to save, Esc to cancel)"


class Console:
    """Terminal output for flowcanvas using Rich."""

    def __init__(self, console: RichConsole | None = None) -> None:
        self.console = console or RichConsole()

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def show_comments(self, comments: dict[str, str]) -> None:
        """Display an annotation snapshot read back from a canvas."""
        if not comments:
            self.info("No comments")
            return
        table = Table(title="Comments", border_style="yellow")
        table.add_column("Key", style="bold")
        table.add_column("Comment")
        for key, text in comments.items():
            table.add_row(key, text)
        self.console.print(table)

    # =========================================================================
    # Canvas view
    # =========================================================================

    def render_canvas(self, session: Session) -> RenderableType:
        """Build the full canvas renderable for one frame."""
        parts: list[RenderableType] = []
        if session.config.title:
            parts.append(Text(session.config.title, style="bold cyan"))
            parts.append(Text(""))

        if session.mode == ViewMode.REVIEW:
            parts.append(self._render_review(session))
        else:
            parts.append(self._render_lines(session))

        selected_key = session.current_key()
        if session.editing:
            parts.append(self._render_editor(session))
        elif selected_key and session.annotations.get(selected_key):
            parts.append(
                Panel(
                    Text(session.annotations[selected_key], style="yellow"),
                    title=selected_key,
                    border_style="yellow",
                )
            )

        help_text = GRAPH_HELP if session.mode == ViewMode.GRAPH else REVIEW_HELP
        parts.append(Text(""))
        parts.append(Text(help_text, style="dim"))
        return Group(*parts)

    def _render_lines(self, session: Session) -> RenderableType:
        view = session.view
        if not view.lines:
            return Text("(empty flowchart)", style="dim")

        text = Text()
        for line in view.lines:
            text.append_text(self._render_line(session, line))
            text.append("\n")
        text.rstrip()
        return text

    def _render_line(self, session: Session, line: Line) -> Text:
        if line.kind in (LineKind.CONNECTOR, LineKind.SPACER):
            return Text(line.text, style="grey50")

        item = session.view.selectables[line.selectable_index]
        selected = line.selectable_index == session.graph_index
        annotated = bool(session.annotations.get(item.annotation_key))

        node = session.graph.nodes.get(line.node_id)
        style = KIND_STYLES.get(node.kind, "white") if node and node.kind else "white"
        if line.kind == LineKind.BACK_REFERENCE:
            style = "dim"
        if annotated:
            style = "yellow"
        if selected:
            style = "bold green"

        rendered = Text(line.prefix + line.branch, style="grey50")
        rendered.append(line.text[len(line.prefix) + len(line.branch):], style=style)
        if annotated:
            rendered.append(" *", style="yellow")
        if selected:
            rendered.append("  ◀", style="green")
        return rendered

    def _render_review(self, session: Session) -> RenderableType:
        entries = session.review_entries
        if not entries:
            return Text("(no comments yet)", style="dim")
        table = Table(show_header=True, border_style="yellow", expand=True)
        table.add_column("Key", style="bold")
        table.add_column("Comment")
        for i, (key, text) in enumerate(entries):
            style = "bold green" if i == session.review_index else ""
            table.add_row(key, text, style=style)
        return table

    def _render_editor(self, session: Session) -> RenderableType:
        text = Text(f"Comment on {session.edit_key}:\n", style="green")
        text.append("▶ ", style="green")
        text.append(session.edit_buffer or "")
        text.append("█", style="green")
        text.append(f"\n{EDIT_HELP}", style="dim")
        return text
