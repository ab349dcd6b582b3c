"""
Clean Code Guard: automated code-quality assessment of submitted repositories.
"""

__version__ = "0.1.0"
