"""
Test suite for the web reader.

Provides tests for all modules:
- Unit tests for the extraction stages
- End to end tests of the reader and the CLI
- Fixtures for common test documents
"""
