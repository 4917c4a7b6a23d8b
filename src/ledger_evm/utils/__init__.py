"""
Utility functions used by the execution layer.
"""
