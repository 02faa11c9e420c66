"""Error taxonomy for the analytics pipeline"""
from typing import Optional


class AnalyticsError(Exception):
    """Base class for all pipeline errors"""

    error_code = "ANALYTICS_ERROR"


class ConfigurationError(AnalyticsError):
    """Missing or invalid data source configuration"""

    error_code = "CONFIGURATION_ERROR"


class DataSourceConnectionError(AnalyticsError):
    """Adapter could not reach its backend"""

    error_code = "CONNECTION_ERROR"


class SQLValidationError(AnalyticsError):
    """Generated SQL failed the safety checks"""

    error_code = "SQL_VALIDATION_FAILED"

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class NoDataSourceError(AnalyticsError):
    """No usable data source for the request"""

    error_code = "NO_DATA_SOURCE"


class TransformationError(AnalyticsError):
    """Records could not be shaped into chart data"""

    error_code = "TRANSFORMATION_ERROR"


class QueryProcessingError(AnalyticsError):
    """Single user-facing failure raised by the orchestrator"""

    error_code = "QUERY_PROCESSING_FAILED"

    def __init__(self, cause: str, error_code: Optional[str] = None):
        super().__init__(f"Query processing failed: {cause}")
        self.cause = cause
        if error_code:
            self.error_code = error_code
