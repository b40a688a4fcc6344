"""
Prompt input for a chat.
"""
from textual.widgets import Input
from textual.message import Message


class InputArea(Input):
    """Enter sends the prompt and empties the box; blank prompts stay put."""

    class Submit(Message, bubble=True):
        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    async def on_key(self, event) -> None:
        if event.key != "enter":
            return
        event.stop()
        if not self.value.strip():
            return
        self.post_message(self.Submit(self.value))
        self.value = ""
