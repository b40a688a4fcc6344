"""
Bookkeeping for the open chats.
"""
import asyncio
import logging
from typing import Optional

from neuratalk.core.animator import RevealRate
from neuratalk.core.errors import SessionConflict
from neuratalk.core.generation import GenerationOptions
from neuratalk.core.session import ConversationSession, Generator
from neuratalk.core.store import TranscriptStore
from neuratalk.models import SessionStatus

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(
        self,
        store: TranscriptStore,
        client: Generator,
        events: Optional[asyncio.Queue] = None,
        options: GenerationOptions = GenerationOptions(),
        rate: RevealRate = RevealRate(),
    ):
        self.store = store
        self.client = client
        self.events = events
        self.options = options
        self.rate = rate

        self.sessions: dict[str, ConversationSession] = {}
        self.current_id: Optional[str] = None
        self.last: Optional[ConversationSession] = None

        self._next_id = 1
        self._closed: list[ConversationSession] = []

    @property
    def current(self) -> Optional[ConversationSession]:
        return self.sessions.get(self.current_id) if self.current_id else None

    def get(self, session_id: str) -> Optional[ConversationSession]:
        return self.sessions.get(session_id)

    def session_for_model(self, model_id: str) -> Optional[ConversationSession]:
        for session in self.sessions.values():
            if session.model_id == model_id:
                return session
        return None

    def _busy_closed_session(self, model_id: str) -> Optional[ConversationSession]:
        self._closed = [s for s in self._closed if s.status is not SessionStatus.IDLE]
        for session in self._closed:
            if session.model_id == model_id:
                return session
        return None

    def create_session(self, model_id: str) -> ConversationSession:
        """
        Open a chat bound to `model_id`, loading its transcript.

        Raises:
            SessionConflict: another session already writes this model's transcript.
            PersistenceError: the transcript cannot be created or read.
        """
        if self.session_for_model(model_id) or self._busy_closed_session(model_id):
            raise SessionConflict(f"a chat with {model_id} is already open")

        self.store.ensure_exists(model_id)
        turns = self.store.load(model_id)

        session_id = f"chat-{self._next_id}"
        self._next_id += 1
        session = ConversationSession(
            model_id,
            self.store,
            self.client,
            session_id=session_id,
            events=self.events,
            options=self.options,
            rate=self.rate,
            turns=turns,
        )
        self.sessions[session_id] = session
        self.current_id = session_id
        self.last = session
        logger.info("Opened %s for %s with %d turns", session_id, model_id, len(turns))
        return session

    def open_session(self, model_id: str) -> ConversationSession:
        existing = self.session_for_model(model_id)
        if existing is not None:
            return self.focus(existing.session_id)
        return self.create_session(model_id)

    def focus(self, session_id: str) -> ConversationSession:
        session = self.sessions[session_id]
        self.current_id = session_id
        self.last = session
        return session

    def close_session(self, session_id: str) -> Optional[ConversationSession]:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return None

        session.close()
        if session.status is not SessionStatus.IDLE:
            self._closed.append(session)
        if self.current_id == session_id:
            self.current_id = next(reversed(self.sessions), None)
        logger.info("Closed %s", session_id)
        return session

    def focus_last_chat(self) -> Optional[ConversationSession]:
        """
        Bring back the most recently active chat, reopening it if its view was
        closed. Returns None when there has been no chat yet.
        """
        session = self.last
        if session is None:
            return None

        if session.session_id not in self.sessions:
            session.closed = False
            if session in self._closed:
                self._closed.remove(session)
            self.sessions[session.session_id] = session

        return self.focus(session.session_id)
