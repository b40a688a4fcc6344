"""
Modal screens for NeuraTalk.
"""
from .model_picker_screen import ModelPickerScreen
from .setup_required_screen import SetupRequiredScreen

__all__ = ["ModelPickerScreen", "SetupRequiredScreen"]
