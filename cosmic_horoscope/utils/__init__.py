"""
Utility functions and services.
"""
