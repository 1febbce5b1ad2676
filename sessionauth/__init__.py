"""
Session Auth Service

Issues and validates access/refresh token pairs for a user-account service.
"""

__version__ = "0.1.0"
