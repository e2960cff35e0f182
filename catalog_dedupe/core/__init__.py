"""
Core domain layer for catalog-dedupe.

This package contains pure business logic with no external dependencies
beyond the string distance capability. All code here should be testable
without I/O operations.
"""

from __future__ import annotations

__all__ = []
