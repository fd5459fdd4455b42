"""
Creative Review Tests Package
=============================
Tests for the diff engine, revision tracker, pin mapper, storage and API.

Run all tests: python3 -m pytest tests/ -v
Run specific: python3 -m pytest tests/review/test_differ.py -v
"""
