from textual import on
from textual.widgets import OptionList
from textual.widgets.option_list import Option
from textual.message import Message


class SelectionMade(Message):
    def __init__(self, label: str, value: str) -> None:
        super().__init__()
        self.label = label
        self.value = value


class SelectOption(OptionList):
    """Option list that reports the picked entry as a SelectionMade message."""

    def __init__(self, labels: list[str] | None = None, ids: list[str] | None = None, id: str | None = None) -> None:
        super().__init__(id=id)
        if labels:
            self.set_selection_options(labels, ids)

    def set_selection_options(self, labels: list[str], ids: list[str] | None = None):
        self.clear_options()
        if ids:
            self.add_options(Option(label, id) for label, id in zip(labels, ids))
        else:
            self.add_options(Option(label) for label in labels)
        self.highlighted = 0

    @on(OptionList.OptionSelected)
    def on_option_selected(self, event: OptionList.OptionSelected) -> None:
        opt = event.option
        label = str(opt.prompt)
        value = opt.id or label

        self.post_message(SelectionMade(label, value))
        event.stop()
