"""
Meal subscription and ordering service
"""
__version__ = "1.0.0"
