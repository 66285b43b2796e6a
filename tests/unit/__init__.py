"""Unit tests for individual components in isolation.

Coverage:
    - relay/: Configuration, request parsing, message assembly, error mapping
    - client/: SSE decoding, stream consumer, conversation state
"""
