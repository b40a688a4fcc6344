"""
Modal shown when ollama or its models cannot be found.
"""

from textual import on
from textual.widgets import Static, OptionList
from textual.widgets.option_list import Option
from textual.containers import Center, Vertical
from textual.screen import ModalScreen

INSTRUCTIONS = (
    "To use NeuraTalk, you need to:\n\n"
    "1. Install Ollama from https://ollama.ai\n"
    "2. Start the Ollama service with 'ollama serve'\n"
    "3. Install a model with 'ollama pull <model-name>'\n\n"
    "Example: ollama pull llama3.2\n"
)


class SetupRequiredScreen(ModalScreen[bool]):
    """Explains the discovery error; dismisses True to retry, False to quit."""
    CSS = """
#panel {
    width: 80%;
    max-width: 100;
    border: round $error;
    padding: 1 2;
}
#setup_options {
    margin-top: 1;
}
#panel OptionList {
    border: none;
    background: transparent;
}
    """
    BINDINGS = [
        ('1', 'retry', 'retry'),
        ('2', 'quit', 'quit'),
    ]

    def __init__(self, message: str) -> None:
        super().__init__()
        self.message = message

    def compose(self):
        yield Center(
                Vertical(
                    Static("[bold orange]Setup Required[/bold orange]\n", markup=True, classes="title"),
                    Static(f"{self.message}\n", markup=False),
                    Static(INSTRUCTIONS, markup=False),
                    OptionList(
                        Option("1. Retry", id="retry"),
                        Option("2. Quit",  id="quit"),
                        id="setup_options",
                    ),
                ),
                id="panel",
        )

    async def _on_mount(self):
        ol = self.query_one(OptionList)
        ol.focus()
        ol.highlighted = 0

    @on(OptionList.OptionSelected)
    def on_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option_id == 'retry')

    def action_retry(self) -> None:
        self.dismiss(True)

    def action_quit(self) -> None:
        self.dismiss(False)
