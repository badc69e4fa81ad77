"""SyncScript Test Suite

This package contains all tests for the SyncScript task engine.

Test organization:
- unit/: Unit tests for individual modules
  - tasks/: Task engine tests (models, rewards, cascade, filters, queries,
    store, analytics, config)
- integration/: Integration tests for the dashboard API and the CLI

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/tasks/test_cascade.py

    # Excluding slow tests
    pytest -m "not slow"
"""
