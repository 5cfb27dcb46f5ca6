# fundscope/core/exceptions.py


class FundscopeError(Exception):
    """Base exception for fundscope errors"""
    pass


class ProviderError(FundscopeError):
    """Raised when the NAV provider returns an error or an unusable payload"""
    pass


class IngestionError(FundscopeError):
    """Raised when an ingestion pass cannot produce a fund universe"""
    pass


class InsightServiceError(FundscopeError):
    """Raised when the insight service fails for a generic reason"""
    pass


class InsightRateLimitError(InsightServiceError):
    """Raised when the insight service answers HTTP 429"""
    pass


class InsightPaymentRequiredError(InsightServiceError):
    """Raised when the insight service answers HTTP 402"""
    pass


class InsightParseError(InsightServiceError):
    """Raised when the insight service reply holds no usable JSON array"""
    pass
