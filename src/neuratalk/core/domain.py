"""
Events a ConversationSession emits towards the display owner.
"""

from typing import Literal, TypedDict, Union


class DisplayEvent(TypedDict, total=False):
    type: Literal['display']
    session_id: str
    text: str


class InputStateEvent(TypedDict, total=False):
    type: Literal['input']
    session_id: str
    enabled: bool


class StatusEvent(TypedDict, total=False):
    type: Literal['status']
    session_id: str
    status: str


class ErrorEvent(TypedDict, total=False):
    type: Literal['error']
    session_id: str
    message: str


class NoticeEvent(TypedDict, total=False):
    type: Literal['notice']
    session_id: str
    message: str


DomainEvent = Union[
    DisplayEvent, InputStateEvent, StatusEvent, ErrorEvent, NoticeEvent,
]
