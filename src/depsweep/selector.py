"""Interactive checklist used before destructive steps."""

from typing import Callable, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, SelectionList, Static

from depsweep.display import format_size
from depsweep.models import SelectableItem, SelectionResult, TargetFolder

Selector = Callable[[str, list[SelectableItem]], SelectionResult]


class MultiSelectApp(App[SelectionResult]):
    """Checklist of items, all pre-selected, confirmed with Enter."""

    TITLE = "depsweep"

    CSS = """
    #select-title {
        padding: 1 2 0 2;
        text-style: bold;
        color: $accent;
    }
    #select-status {
        padding: 0 2;
        color: $text-muted;
    }
    SelectionList {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("enter", "confirm", "Confirm", priority=True),
        Binding("escape", "cancel", "Cancel", priority=True),
        Binding("q", "cancel", "Cancel", show=False, priority=True),
        Binding("a", "select_all", "All", priority=True),
        Binding("n", "select_none", "None", priority=True),
        Binding("i", "invert", "Invert", priority=True),
    ]

    def __init__(self, title: str, items: list[SelectableItem]):
        super().__init__()
        self.select_title = title
        self.items = [item.model_copy() for item in items]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(self.select_title, id="select-title")
        yield SelectionList[int](
            *(
                (Text.assemble(item.label, "  ", (item.detail, "cyan")), i, item.selected)
                for i, item in enumerate(self.items)
            ),
            id="select-list",
        )
        yield Static("", id="select-status")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one(SelectionList).focus()
        self._update_status()

    def on_selection_list_selected_changed(self, event: SelectionList.SelectedChanged) -> None:
        self._update_status()

    def _update_status(self) -> None:
        selected = len(self.query_one(SelectionList).selected)
        status = self.query_one("#select-status", Static)
        status.update(f"{selected}/{len(self.items)} selected")

    def action_select_all(self) -> None:
        self.query_one(SelectionList).select_all()

    def action_select_none(self) -> None:
        self.query_one(SelectionList).deselect_all()

    def action_invert(self) -> None:
        self.query_one(SelectionList).toggle_all()

    def action_confirm(self) -> None:
        selected = set(self.query_one(SelectionList).selected)
        for i, item in enumerate(self.items):
            item.selected = i in selected
        self.exit(SelectionResult(items=self.items, canceled=False))

    def action_cancel(self) -> None:
        self.exit(SelectionResult(items=self.items, canceled=True))


def textual_select(title: str, items: list[SelectableItem]) -> SelectionResult:
    """
    Run the interactive checklist.

    Quitting the app without confirming counts as a cancel.
    """
    app = MultiSelectApp(title, items)
    result = app.run()
    if result is None:
        return SelectionResult(items=items, canceled=True)
    return result


def select_folders(
    folders: list[TargetFolder],
    title: str,
    selector: Selector,
) -> Optional[list[TargetFolder]]:
    """
    Let the user pick which folders to act on.

    Args:
        folders: Candidate folders
        title: Checklist heading
        selector: Selection capability

    Returns:
        Selected folders (possibly empty), or None if canceled
    """
    items = [
        SelectableItem(label=f.path, detail=format_size(f.size_bytes), selected=True)
        for f in folders
    ]
    result = selector(title, items)
    if result.canceled:
        return None
    return [folder for folder, item in zip(folders, result.items) if item.selected]
