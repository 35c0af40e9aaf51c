"""
Courtside - sports facility booking admission and settlement service
"""

__version__ = "1.0.0"
