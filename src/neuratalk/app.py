"""
NeuraTalk terminal app
"""

import asyncio
import logging
from typing import Optional

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, TabbedContent, TabPane

from neuratalk.config import AppConfig, Settings, load_settings, save_settings
from neuratalk.core.catalog import ModelCatalog
from neuratalk.core.errors import DiscoveryError, NeuraTalkError
from neuratalk.core.generation import GenerationClient
from neuratalk.core.manager import SessionManager
from neuratalk.core.session import ConversationSession
from neuratalk.core.store import TranscriptStore
from neuratalk.logging_utils import configure_logging
from neuratalk.models import SessionStatus
from neuratalk.screens import ModelPickerScreen, SetupRequiredScreen
from neuratalk.widgets import ChatView, InputArea

logger = logging.getLogger(__name__)

SPEED_STEP = 10


class ChatApp(App):
    TITLE = "NeuraTalk"
    BINDINGS = [
        Binding("ctrl+n", "new_chat", "New chat"),
        Binding("ctrl+l", "last_chat", "Last chat"),
        Binding("ctrl+w", "close_chat", "Close chat"),
        Binding("escape", "skip_reveal", "Skip"),
        Binding("ctrl+k", "clear_chat", "Clear"),
        Binding("ctrl+up", "faster", "Faster"),
        Binding("ctrl+down", "slower", "Slower"),
    ]

    def __init__(self, config: AppConfig, settings: Optional[Settings] = None):
        """Initialize the chat application from its configuration."""
        super().__init__()
        self.config = config
        self.settings = settings or load_settings(config.settings_path)

        self.event_q: asyncio.Queue = asyncio.Queue()
        self.catalog = ModelCatalog(binary=config.ollama_bin)
        self.store = TranscriptStore(config.conversations_dir, config.history_dir)
        self.client = GenerationClient(base_url=config.ollama_host)
        self.manager = SessionManager(
            self.store,
            self.client,
            self.event_q,
            options=self.settings.generation_options(),
            rate=self.settings.reveal_rate(),
        )

        self.models: list[str] = []
        self._views: dict[str, ChatView] = {}

    def compose(self) -> ComposeResult:
        yield TabbedContent(id="chats")
        yield Footer()

    async def on_mount(self) -> None:
        self.theme = "textual-light" if self.settings.theme == "Light" else "textual-dark"
        self._pump()
        self._startup_flow()

    @work(exclusive=True, group="startup")
    async def _startup_flow(self) -> None:
        """
        Discover models, asking the user to fix the setup until it works or
        they quit, then open the first chat.
        """
        while True:
            try:
                self.models = await self.catalog.alist_models()
                break
            except DiscoveryError as exc:
                logger.warning("Model discovery failed: %s", exc)
                retry = await self.push_screen_wait(SetupRequiredScreen(str(exc)))
                if not retry:
                    self.exit()
                    return

        model = self.settings.model if self.settings.model in self.models else None
        if model is None:
            model = await self.push_screen_wait(ModelPickerScreen(self.models))
        if model:
            await self._open_chat(model)

    async def _open_chat(self, model_id: str) -> None:
        try:
            session = self.manager.open_session(model_id)
        except NeuraTalkError as exc:
            self.notify(str(exc), severity="error")
            return
        await self._show_session(session)

        if self.settings.model != model_id:
            self.settings.model = model_id
            self._save_settings()

    async def _show_session(self, session: ConversationSession) -> None:
        tabs = self.query_one("#chats", TabbedContent)
        if session.session_id not in self._views:
            view = ChatView(session.session_id, session.model_id, session.current_display_text())
            title = f"Chat {session.session_id.split('-')[-1]} · {session.model_id}"
            await tabs.add_pane(TabPane(title, view, id=session.session_id))
            # registered once mounted, so the pump never writes to an unmounted view
            self._views[session.session_id] = view
            view.show_text(session.current_display_text(), auto_scroll=True)
        tabs.active = session.session_id
        self._views[session.session_id].set_input_enabled(session.is_input_enabled())

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        session_id = event.pane.id
        if session_id and self.manager.get(session_id):
            self.manager.focus(session_id)

    async def on_input_area_submit(self, message: InputArea.Submit) -> None:
        session = self.manager.current
        if session is None:
            return

        if session.status is SessionStatus.ANIMATING:
            # Enter during a reveal finishes it and sends straight away.
            session.skip_reveal()

        accepted = session.submit(
            message.value,
            options=self.settings.generation_options(),
            rate=self.settings.reveal_rate(),
        )
        if not accepted:
            view = self._views.get(session.session_id)
            if view is not None and message.value.strip():
                view.prompt_input.value = message.value

    @work(exclusive=True, group='pump')
    async def _pump(self):
        """
        Apply session events to their views. This is the only place
        display state is written.

        Event types handled:
        - 'display': new conversation text for a chat
        - 'input': enable or disable the prompt input
        - 'status': session state change (logged)
        - 'error' / 'notice': shown as notifications
        """
        while True:
            ev = await self.event_q.get()
            type = ev.get("type", '')
            view = self._views.get(ev.get('session_id', ''))

            if type == 'display':
                if view:
                    view.show_text(ev.get('text', ''), auto_scroll=self.settings.auto_scroll)
            elif type == 'input':
                if view:
                    view.set_input_enabled(ev.get('enabled', True))
            elif type == 'status':
                logger.debug("%s is %s", ev.get('session_id'), ev.get('status'))
            elif type == 'error':
                self.notify(ev.get('message', ''), title="Error", severity="error")
            elif type == 'notice':
                self.notify(ev.get('message', ''), severity="warning")

    @work(exclusive=True, group="picker")
    async def action_new_chat(self) -> None:
        if not self.models:
            return
        current = self.manager.current
        model = await self.push_screen_wait(
            ModelPickerScreen(self.models, current.model_id if current else None)
        )
        if model:
            await self._open_chat(model)

    async def action_last_chat(self) -> None:
        session = self.manager.focus_last_chat()
        if session is None:
            self.notify("No previous chat")
            return
        await self._show_session(session)

    async def action_close_chat(self) -> None:
        session = self.manager.current
        if session is None:
            return
        self.manager.close_session(session.session_id)
        self._views.pop(session.session_id, None)
        await self.query_one("#chats", TabbedContent).remove_pane(session.session_id)

        current = self.manager.current
        if current is not None:
            await self._show_session(current)

    def action_skip_reveal(self) -> None:
        session = self.manager.current
        if session is not None:
            session.skip_reveal()

    async def action_clear_chat(self) -> None:
        session = self.manager.current
        if session is None:
            return
        if await session.clear_conversation():
            self.notify(f"Cleared conversation with {session.model_id}")

    def action_faster(self) -> None:
        self._change_speed(SPEED_STEP)

    def action_slower(self) -> None:
        self._change_speed(-SPEED_STEP)

    def _change_speed(self, delta: float) -> None:
        self.settings = self.settings.with_animation_speed(self.settings.animation_speed + delta)
        rate = self.settings.reveal_rate()
        self.manager.rate = rate
        for session in self.manager.sessions.values():
            session.set_reveal_rate(rate)
        self._save_settings()
        self.notify(f"Animation speed {self.settings.animation_speed:g}")

    def _save_settings(self) -> None:
        try:
            save_settings(self.settings, self.config.settings_path)
        except OSError as exc:
            logger.error("Saving settings failed: %s", exc)
            self.notify(f"Failed to save settings: {exc}", severity="error")


def main():
    config = AppConfig.from_env()
    configure_logging(config.log_file, config.log_level)
    app = ChatApp(config)
    app.run()


if __name__ == "__main__":
    main()
