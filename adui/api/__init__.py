"""
Development metadata server.
"""
