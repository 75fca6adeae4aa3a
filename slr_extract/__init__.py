"""
Systematic Review Table Extraction Pipeline

A Python pipeline that uses the Gemini API to extract a literature-review
table from batches of abstracts or from PDF papers.
"""

__version__ = "1.0.0"
