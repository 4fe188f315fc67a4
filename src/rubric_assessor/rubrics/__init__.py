"""
Rubrics module.

Handles loading rubric templates and parsing them into structured rubrics.
"""

from .loader import RubricLoader
from .models import Criterion, Level, Rubric, RubricWorkbook, Sheet
from .parser import parse_rubric_sheet

__all__ = [
    "RubricLoader",
    "Criterion",
    "Level",
    "Rubric",
    "RubricWorkbook",
    "Sheet",
    "parse_rubric_sheet",
]
