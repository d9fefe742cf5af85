"""
Data providers - interchangeable backends behind one async contract.
"""

# Package initialization for providers module
from .base import DataProvider, ProviderKind
from .mock import MockDataProvider
from .external import ExternalMetadataProvider
from .json_import import JSONImportProvider, ImportDiagnostic
from .api import RemoteApiProvider
from .registry import ProviderRegistry, create_default_provider

__all__ = [
    'DataProvider',
    'ProviderKind',
    'MockDataProvider',
    'ExternalMetadataProvider',
    'JSONImportProvider',
    'ImportDiagnostic',
    'RemoteApiProvider',
    'ProviderRegistry',
    'create_default_provider'
]
