"""
Test fixtures package.

Provides test doubles and helpers shared across the suite.
"""

from .doubles import FakeClock, InMemoryBlobStore, published

__all__ = ["FakeClock", "InMemoryBlobStore", "published"]
