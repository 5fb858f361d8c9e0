"""
Text helpers (identifier case formats).
"""

from .case_format import CaseFormat

__all__ = ["CaseFormat"]
