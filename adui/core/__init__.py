"""
Core model - canonical schema, adaptation, validation, caching and connection monitoring.
"""
