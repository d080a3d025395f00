# src/reporank/core/__init__.py
"""
Core configuration and error types.
"""
