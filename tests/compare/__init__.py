"""
Preview Diff Tests Package
==========================
Test suite for the diff, highlight and navigation modules.

Run all tests: python3 -m pytest tests/ -v
Run specific: python3 -m pytest tests/compare/test_differ.py -v
"""

__version__ = "1.0.0"
