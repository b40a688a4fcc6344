"""
Modal for choosing the model of a new chat.
"""

from textual import on
from textual.binding import Binding
from textual.containers import Center, Vertical
from textual.screen import ModalScreen
from textual.widgets import Static

from neuratalk.widgets.select_option import SelectOption, SelectionMade


class ModelPickerScreen(ModalScreen[str | None]):
    CSS = """
#panel {
    width: 60%;
    max-width: 80;
    border: round $secondary;
    padding: 1 2;
}
#panel SelectOption {
    border: none;
    background: transparent;
    max-height: 20;
}
    """
    BINDINGS = [Binding('escape', 'cancel', 'cancel')]

    def __init__(self, models: list[str], current: str | None = None) -> None:
        super().__init__()
        self.models = models
        self.current = current

    def compose(self):
        yield Center(
            Vertical(
                Static("[bold]Model:[/bold]", markup=True),
                SelectOption(self.models, self.models, id="model_options"),
            ),
            id="panel",
        )

    async def _on_mount(self):
        options = self.query_one(SelectOption)
        options.focus()
        if self.current in self.models:
            options.highlighted = self.models.index(self.current)

    @on(SelectionMade)
    def on_selection_made(self, message: SelectionMade) -> None:
        self.dismiss(message.value)

    def action_cancel(self) -> None:
        self.dismiss(None)
