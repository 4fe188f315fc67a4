"""Output generation module for the rubric assessor."""

from .pdf_generator import default_pdf_name, generate_assessment_pdf

__all__ = ["default_pdf_name", "generate_assessment_pdf"]
