"""
NeuraTalk: chat with local ollama models in the terminal.
"""

__version__ = "0.1.0"
