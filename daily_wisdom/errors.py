"""
Exception taxonomy for the content pipeline.
"""


class DailyWisdomError(Exception):
    """Base class for all pipeline errors"""
    pass


class ConfigurationError(DailyWisdomError):
    """Missing or unreadable configuration (prompts file, settings)"""
    pass


class ProviderUnavailableError(DailyWisdomError):
    """No usable provider: missing credentials or unsupported language. Not retryable."""
    pass


class InsufficientQuotaError(DailyWisdomError):
    """Translation provider does not have enough quota left for the article"""

    def __init__(self, required: int, remaining: int, provider: str = "primary"):
        self.required = required
        self.remaining = remaining
        self.provider = provider
        super().__init__(
            f"{provider} quota insufficient: {required} characters required, {remaining} remaining"
        )


class TranslationProviderError(DailyWisdomError):
    """Transient failure calling a translation backend"""

    def __init__(self, message: str, status: int = 0):
        self.status = status
        super().__init__(message)
