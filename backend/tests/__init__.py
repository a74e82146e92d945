"""
Tests package for TempShare backend.

This package contains test suites organized by type:
- unit/: Fast tests without external services
- integration/: Filesystem and Redis backed tests
- property/: Hypothesis property-based tests
"""
