"""NiceGUI interface - thin visualization layer for the chat assistant.

Responsibilities:
    - Chat turn display with streaming updates
    - Optional image attachment for the next message
    - Per-browser history and dark-mode persistence
    - Clear-chat action

Contains no streaming logic of its own. Delegates to src.client.
"""
