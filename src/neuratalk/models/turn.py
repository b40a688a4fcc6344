"""
Data models for NeuraTalk conversations.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


SEPARATOR = "\n\n"


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"

    @property
    def marker(self) -> str:
        return USER_MARKER if self is Speaker.USER else ASSISTANT_MARKER


USER_MARKER = "You: "
ASSISTANT_MARKER = "AI: "


class SessionStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    ANIMATING = "animating"


@dataclass(frozen=True)
class Turn:
    """
    A single user prompt or assistant response.
    """
    speaker: Speaker
    text: str

    def render(self) -> str:
        return f"{self.speaker.marker}{self.text}"


def format_turns(turns: Iterable[Turn]) -> str:
    """Join turns into the wire form, blank line between each."""
    return SEPARATOR.join(turn.render() for turn in turns)


def _speaker_of(fragment: str) -> Optional[Speaker]:
    # An empty turn is stored as a bare marker, which stripping cuts to "AI:".
    for speaker in Speaker:
        if fragment.startswith(speaker.marker) or fragment == speaker.marker.rstrip():
            return speaker
    return None


def parse_turns(text: str) -> list[Turn]:
    """
    Rebuild turns from their wire form.

    Fragments are split on the blank-line separator and stripped; empty ones
    are dropped. A fragment without a speaker marker belongs to the turn
    before it (a response with several paragraphs), or starts an assistant
    turn when nothing precedes it.
    """
    turns: list[Turn] = []
    for fragment in text.split(SEPARATOR):
        fragment = fragment.strip()
        if not fragment:
            continue

        speaker = _speaker_of(fragment)
        if speaker is not None:
            turns.append(Turn(speaker, fragment[len(speaker.marker):]))
        elif turns:
            last = turns.pop()
            turns.append(Turn(last.speaker, last.text + SEPARATOR + fragment))
        else:
            turns.append(Turn(Speaker.ASSISTANT, fragment))
    return turns
