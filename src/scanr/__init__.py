"""scanr - concurrent, context-aware line pattern scanner"""

from scanr.__version__ import __version__

__all__ = ['__version__']
