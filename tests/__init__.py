"""
Unit Tests for ucitap

This package contains unit tests for the board model, the notation
converter, the protocol parser, the tap log, the proxy and replay.

Running Tests:
    # Run all tests
    pytest tests/

    # Run specific test file
    pytest tests/test_replayer.py

    # Run with coverage
    pytest tests/ --cov=ucitap --cov-report=html

    # Run specific test
    pytest tests/test_notation.py::TestDisambiguation

Dependencies:
    - pytest: Test framework
    - pytest-cov: Coverage reporting
    - chess: Reference move generator and SAN oracle
"""
