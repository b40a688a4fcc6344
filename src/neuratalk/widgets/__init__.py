"""
Custom UI widgets for NeuraTalk.
"""
from .input_area import InputArea
from .chat_view import ChatView
from .select_option import SelectOption, SelectionMade

__all__ = ["InputArea", "ChatView", "SelectOption", "SelectionMade"]
