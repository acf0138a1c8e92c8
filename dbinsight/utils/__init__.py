"""
Utility functions and helper classes
"""

from .log import get_logger
from .query_optimizer import QueryOptimizer
from .schema_analyzer import SchemaAnalyzer

__all__ = [
    'get_logger',
    'QueryOptimizer',
    'SchemaAnalyzer'
]
