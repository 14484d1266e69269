"""Test package for pawroute.

This package contains:
- Unit tests (test_interpreter.py, test_fallback.py, test_directions.py, ...)
- Pipeline tests (test_assembler.py)
- HTTP action and CLI tests (test_actions.py, test_cli.py)
- Test configuration (conftest.py)
"""
