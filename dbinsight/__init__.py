"""
Schema and data profiling for relational and document databases
"""

__version__ = "0.1.0"
