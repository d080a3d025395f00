# src/reporank/shared/__init__.py
"""
External collaborators: the GitHub repository source and the tool-calling model engine.
"""
