"""
Small utilities shared across hemibrainpy.
"""
from .logging import get_logger
