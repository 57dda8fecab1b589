"""
Persistence backends for the tasks service.
"""

from .postgres import PostgresTaskStore

__all__ = ["PostgresTaskStore"]
