"""
ADUI forms - schema adaptation, data providers and template import for
metadata-driven mobile forms.
"""

from .core.config import VERSION

__version__ = VERSION
