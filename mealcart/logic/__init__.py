"""Core business logic layer.

Subpackages:
- shopping: extraction, merging, categorization, check state and export of shopping lists
"""
__all__ = ["shopping"]
