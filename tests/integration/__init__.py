"""Integration tests for components working together.

Coverage:
    - Relay HTTP contract through the real FastAPI app
    - Stream consumer talking to the real app in front of a fake gateway
"""
