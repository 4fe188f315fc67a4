"""
Rubric Assessor

Parses spreadsheet-style rubric templates, scores students against them,
drafts narrative feedback with an AI model and keeps a local history of
saved assessments.
"""

__version__ = "0.1.0"
