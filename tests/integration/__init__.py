# tests/integration/__init__.py
"""Tests that start a real localnet. Skipped when ``sui`` is not on PATH."""
