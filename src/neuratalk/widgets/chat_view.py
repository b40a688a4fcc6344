"""
Display for one chat: the conversation text and the prompt input.
"""
from textual.app import ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Static

from .input_area import InputArea


class ChatView(Vertical):
    DEFAULT_CSS = """
    ChatView {
        height: 1fr;
    }
    ChatView #output_scroll {
        height: 1fr;
        padding: 0 1;
    }
    ChatView InputArea {
        dock: bottom;
    }
    """

    def __init__(self, session_id: str, model_id: str, text: str = "", id: str | None = None) -> None:
        super().__init__(id=id)
        self.session_id = session_id
        self.model_id = model_id
        self._initial_text = text

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="output_scroll"):
            yield Static(self._initial_text, id="output", markup=False)
        yield InputArea(id="input_text", placeholder=f"Message {self.model_id}")

    @property
    def prompt_input(self) -> InputArea:
        return self.query_one("#input_text", InputArea)

    def show_text(self, text: str, auto_scroll: bool = True) -> None:
        scroll = self.query_one("#output_scroll", VerticalScroll)
        # follow only a reader who was already at the bottom
        at_bottom = scroll.scroll_y >= scroll.max_scroll_y
        self.query_one("#output", Static).update(text)
        if auto_scroll and at_bottom:
            scroll.call_after_refresh(scroll.scroll_end, animate=False)

    def set_input_enabled(self, enabled: bool) -> None:
        self.prompt_input.disabled = not enabled
        if enabled:
            self.prompt_input.focus()
