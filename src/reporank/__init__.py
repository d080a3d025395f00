# src/reporank/__init__.py
"""
Organization repository ranking.

Lists an organization's repositories, scores each one against weighted
criteria taken from repository metadata and from a model's reading of the
README, and writes a ranked CSV report.
"""

__version__ = "1.0.0"
__description__ = "Rank an organization's repositories by weighted metadata and README criteria"
