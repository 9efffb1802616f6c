"""
Pipeline Exceptions
"""


class PipelineError(Exception):
    """Base class for all pipeline failures"""


class IngestionError(PipelineError):
    """Raised when a source file cannot be read or lacks required columns"""


class TransformationError(PipelineError):
    """Raised when a transformation step cannot complete, e.g. a failed type coercion"""


class DataQualityError(PipelineError):
    """Raised when ERROR-level validation checks fail"""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class PersistenceError(PipelineError):
    """Raised when writing a relation to the database fails"""

    def __init__(self, message: str, table: str):
        super().__init__(message)
        self.table = table
