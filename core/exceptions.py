"""Custom exceptions for the performance module."""


class PerformanceModuleException(Exception):
    """Base exception for all performance module errors."""
    pass


class ValidationError(PerformanceModuleException):
    """Raised when input validation fails."""

    def __init__(self, message: str, data=None):
        super().__init__(message)
        self.data = data


class PortfolioValidationError(PerformanceModuleException):
    """Raised when portfolio configuration is invalid."""

    def __init__(self, message: str, portfolio_data=None):
        super().__init__(message)
        self.portfolio_data = portfolio_data


class MissingDataError(PerformanceModuleException):
    """Raised when the data provider returns no rows for a symbol/date range."""

    def __init__(self, message: str, ticker=None):
        super().__init__(message)
        self.ticker = ticker


class MisalignedWeightsError(PerformanceModuleException):
    """Raised when a weight vector does not match the assets or does not sum to 1."""

    def __init__(self, message: str, weights=None):
        super().__init__(message)
        self.weights = weights


class JoinMismatchError(PerformanceModuleException):
    """Raised when two series share no overlapping periods."""

    def __init__(self, message: str, left=None, right=None):
        super().__init__(message)
        self.left = left
        self.right = right


class MalformedDateError(PerformanceModuleException):
    """Raised when a date field cannot be parsed."""

    def __init__(self, message: str, values=None):
        super().__init__(message)
        self.values = values


class DataLoadingError(PerformanceModuleException):
    """Raised when data loading fails."""

    def __init__(self, message: str, source=None):
        super().__init__(message)
        self.source = source


class AnalysisError(PerformanceModuleException):
    """Raised when analysis calculation fails."""

    def __init__(self, message: str, analysis_type=None):
        super().__init__(message)
        self.analysis_type = analysis_type


class CacheError(PerformanceModuleException):
    """Raised when cache operations fail."""

    def __init__(self, message: str, cache_key=None):
        super().__init__(message)
        self.cache_key = cache_key
