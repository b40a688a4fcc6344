"""
One chat: ordered turns, the generation round trip and the reveal of its result.
"""
import asyncio
import logging
from typing import Optional, Protocol

from neuratalk.core.animator import RevealAnimator, RevealRate
from neuratalk.core.domain import DomainEvent
from neuratalk.core.errors import GenerationError, PersistenceError
from neuratalk.core.generation import GenerationOptions
from neuratalk.core.store import TranscriptStore
from neuratalk.models import SEPARATOR, SessionStatus, Speaker, Turn, format_turns

logger = logging.getLogger(__name__)

THINKING_PLACEHOLDER = "AI: Thinking..."

# Background tasks outlive their session's view; hold them until done.
_background_tasks: set[asyncio.Task] = set()


def _spawn(coro) -> asyncio.Task:
    task = asyncio.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


class Generator(Protocol):
    async def generate(
        self, model_id: str, prior_turns_joined: str, new_prompt: str, options: GenerationOptions
    ) -> str: ...


class ConversationSession:
    """
    State machine: IDLE -> GENERATING -> ANIMATING -> IDLE, or straight back
    to IDLE when generation fails.

    The session never touches widgets. Every display-affecting change is
    put on `events` as a DomainEvent and the UI applies it on its own loop.
    """

    def __init__(
        self,
        model_id: str,
        store: TranscriptStore,
        client: Generator,
        *,
        session_id: str = "chat-1",
        events: Optional[asyncio.Queue] = None,
        options: GenerationOptions = GenerationOptions(),
        rate: RevealRate = RevealRate(),
        turns: Optional[list[Turn]] = None,
    ):
        self.model_id = model_id
        self.session_id = session_id
        self.store = store
        self.client = client
        self.events = events
        self.options = options
        self.rate = rate

        self.turns: list[Turn] = list(turns or [])
        self.status = SessionStatus.IDLE
        self.pending_prompt: Optional[str] = None
        self.closed = False

        self._draft = ""
        self._clearing = False
        self._revealed_from = len(self.turns)
        self._task: Optional[asyncio.Task] = None
        self.animator = RevealAnimator(rate, on_change=self._on_reveal_change, on_finish=self._on_reveal_finish)

    # --- UI contract -----------------------------------------------------

    def get_input(self) -> str:
        return self._draft

    def set_input(self, text: str) -> None:
        self._draft = text

    def is_input_enabled(self) -> bool:
        return self.status is not SessionStatus.GENERATING

    def current_display_text(self) -> str:
        if self.status is SessionStatus.GENERATING:
            parts = [format_turns(self.turns)] if self.turns else []
            parts.append(Turn(Speaker.USER, self.pending_prompt or "").render())
            parts.append(THINKING_PLACEHOLDER)
            return SEPARATOR.join(parts)

        settled = self.turns[:self._revealed_from]
        revealing = self.animator.display_text if self._revealed_from < len(self.turns) else ""
        parts = [format_turns(settled)] if settled else []
        if revealing:
            parts.append(revealing)
        return SEPARATOR.join(parts)

    def submit(
        self,
        prompt: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
        rate: Optional[RevealRate] = None,
    ) -> bool:
        """
        Start a generation for `prompt` (the draft when omitted).

        Returns False, changing nothing, when the prompt is blank or the
        session is not idle. Check and state change happen without yielding
        to the loop, so two submissions can never both pass.
        """
        text = (self._draft if prompt is None else prompt).strip()
        if not text:
            return False
        if self.status is not SessionStatus.IDLE or self._clearing:
            logger.debug("[%s] submit rejected while %s", self.session_id, self.status.value)
            return False

        snapshot = list(self.turns)
        self.status = SessionStatus.GENERATING
        self.pending_prompt = text
        if prompt is None:
            self._draft = ""

        self._emit({'type': 'status', 'status': self.status.value})
        self._emit({'type': 'input', 'enabled': False})
        self._emit_display()

        self._task = _spawn(self._run_generation(text, snapshot, options or self.options, rate or self.rate))
        return True

    # --- generation --------------------------------------------------------

    async def _run_generation(
        self, prompt: str, snapshot: list[Turn], options: GenerationOptions, rate: RevealRate
    ) -> None:
        prior = format_turns(snapshot)
        try:
            response = await self.client.generate(self.model_id, prior, prompt, options)
        except GenerationError as exc:
            logger.warning("[%s] generation failed: %s", self.session_id, exc)
            self._rollback(snapshot, str(exc))
            return

        entry = [Turn(Speaker.USER, prompt), Turn(Speaker.ASSISTANT, response.strip())]
        try:
            await asyncio.to_thread(self.store.append_turns, self.model_id, entry)
        except PersistenceError as exc:
            self._rollback(snapshot, str(exc))
            return

        self.turns = [*snapshot, *entry]
        self._revealed_from = len(snapshot)
        self.pending_prompt = None
        self.status = SessionStatus.ANIMATING
        self._emit({'type': 'status', 'status': self.status.value})
        self._emit({'type': 'input', 'enabled': True})

        self.animator.reveal(format_turns(entry), rate)
        if self.closed:
            # nobody is watching
            self.animator.skip()

        _spawn(self._save_snapshot(list(self.turns)))

    def _rollback(self, snapshot: list[Turn], message: str) -> None:
        self.turns = snapshot
        self.pending_prompt = None
        self.status = SessionStatus.IDLE
        self._emit({'type': 'status', 'status': self.status.value})
        self._emit({'type': 'input', 'enabled': True})
        self._emit({'type': 'error', 'message': message})
        self._emit_display()

    async def _save_snapshot(self, turns: list[Turn]) -> None:
        try:
            path = await asyncio.to_thread(self.store.save_snapshot, self.model_id, turns)
        except PersistenceError as exc:
            logger.warning("[%s] history snapshot skipped: %s", self.session_id, exc)
            self._emit({'type': 'notice', 'message': f"history snapshot not saved: {exc}"})
            return
        logger.debug("[%s] history snapshot written to %s", self.session_id, path)

    # --- reveal ------------------------------------------------------------

    def skip_reveal(self) -> None:
        self.animator.skip()

    def set_reveal_rate(self, rate: RevealRate) -> None:
        self.rate = rate
        self.animator.set_rate(rate.chars_per_tick, rate.period_ms)

    def _on_reveal_change(self) -> None:
        self._emit_display()

    def _on_reveal_finish(self) -> None:
        if self.status is SessionStatus.ANIMATING:
            self.status = SessionStatus.IDLE
            self._emit({'type': 'status', 'status': self.status.value})

    # --- other operations --------------------------------------------------

    async def clear_conversation(self) -> bool:
        """
        Empty the conversation, on disk first. Only allowed while idle; when
        the store cannot be cleared the in-memory turns are kept as they are.
        """
        if self.status is not SessionStatus.IDLE or self._clearing:
            self._emit({'type': 'notice', 'message': "Wait for the response to finish before clearing"})
            return False

        self._clearing = True
        try:
            await asyncio.to_thread(self.store.clear, self.model_id)
        except PersistenceError as exc:
            self._emit({'type': 'error', 'message': str(exc)})
            return False
        finally:
            self._clearing = False

        self.turns = []
        self._revealed_from = 0
        self._emit_display()
        return True

    def close(self) -> None:
        """
        Detach from the display. A generation already running is left to
        finish and persist.
        """
        self.closed = True
        self.animator.skip()

    async def wait_idle(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})
        await self.animator.wait()

    def _emit(self, event: DomainEvent) -> None:
        if self.events is None:
            return
        event['session_id'] = self.session_id
        self.events.put_nowait(event)

    def _emit_display(self) -> None:
        self._emit({'type': 'display', 'text': self.current_display_text()})
