"""
Test suite for Microgreens Hub.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_harvest_service.py -v
"""
