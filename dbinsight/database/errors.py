"""
Error taxonomy for database analysis
"""


class DBInsightError(Exception):
    """Base class for analysis errors"""
    pass


class UnsupportedDialect(DBInsightError, ValueError):
    """Raised when a dialect name is not one of the supported backends"""

    def __init__(self, dialect):
        self.dialect = dialect
        super().__init__(f"Unsupported database type: {dialect}")


class MetadataUnavailable(DBInsightError):
    """Raised when a catalog lookup (indexes, constraints, size...) fails"""
    pass


class SampleUnavailable(DBInsightError):
    """Raised when column statistics cannot be collected"""
    pass


class AlreadyRunning(DBInsightError):
    """Raised when starting a scheduler that is already running"""
    pass


class NotRunning(DBInsightError):
    """Raised when stopping a scheduler that is idle"""
    pass


class InvalidConfiguration(DBInsightError, ValueError):
    """Raised when settings fail validation"""
    pass
