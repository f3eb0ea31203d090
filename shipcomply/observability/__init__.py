"""
Structured logging.
"""
