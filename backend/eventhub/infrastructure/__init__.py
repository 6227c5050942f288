"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .connection import ConnectionManager, connect, get_connection_manager, reset_connection_manager

__all__ = ['ConnectionManager', 'connect', 'get_connection_manager', 'reset_connection_manager']
