"""
Community Researcher - guided village interview, web research and report generation.
"""

__version__ = "0.1.0"
