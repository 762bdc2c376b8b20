"""
Employee API - REST proxy in front of the mock employee service.
"""

__version__ = "0.1.0"
