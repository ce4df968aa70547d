#!/usr/bin/env python3
"""
Test suite for the match engine.

All tests run in-process with no external services:

    # Run all tests
    python -m pytest tests/ -v

    # Skip the threaded runner tests
    python -m pytest tests/ -v -m "not threaded"

    # Using unittest (TestCase-based modules only)
    python -m unittest discover tests -v
"""
