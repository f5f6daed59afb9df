"""
Custom error classes for the application
"""


class RouterError(Exception):
    """Base exception for routing and session errors"""
    pass


class KeywordMapError(RouterError):
    """Invalid intent keyword configuration"""
    pass


class ContextConversionError(RouterError):
    """Chat context cannot be converted to the requested type"""
    pass
