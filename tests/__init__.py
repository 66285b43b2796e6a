"""Test package for the Artificial chat relay and stream consumer.

Structure:
    - unit/: Individual function and class tests
    - integration/: Relay app and consumer working end to end
    - fakes.py: Scripted upstream gateway

The upstream gateway is always faked with httpx.MockTransport; no test
contacts a real provider. Leverages pytest with pytest-check for soft
assertions.
"""
