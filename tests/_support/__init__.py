"""
Test support utilities for listcraft tests.

Mapped test models and an in-memory ``PositionStore`` live here rather than
in conftest so test modules can import them directly.
"""
