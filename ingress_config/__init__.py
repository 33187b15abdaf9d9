"""
Renders nginx configuration text from structured proxy configuration.
"""

__version__ = "0.1.0"
