"""
Echo Diarization - Core Package

Speaker diarization and word/segment alignment for transcribed recordings.
"""

__version__ = "0.1.0"
__author__ = "Echo Team"

# Package metadata
__all__ = [
    'alignment',
    'audio',
    'metrics'
]
