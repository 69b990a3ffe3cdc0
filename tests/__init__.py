"""
nimbus.io SDK Test Suite.

This package contains:
- unit/: Unit tests (no network, no fake service)
- integration/: Full request path against an in-memory fake service
"""
