from __future__ import annotations


class ProviderError(RuntimeError):
    """A search/catalog provider could not produce results."""

    def __init__(self, provider: str, message: str):
        super().__init__(message)
        self.provider = provider
        self.message = message


class ConfigurationError(ProviderError):
    pass


class UpstreamHTTPError(ProviderError):
    def __init__(self, provider: str, status_code: int, message: str):
        super().__init__(provider, message)
        self.status_code = status_code


class UpstreamTimeout(ProviderError):
    pass


class ParseError(ProviderError):
    pass


class NoProvidersSucceeded(ProviderError):
    def __init__(self, errors: list[ProviderError], fallback_message: str):
        first = errors[0] if errors else None
        super().__init__(
            first.provider if first else "search",
            first.message if first else fallback_message,
        )
        self.errors = errors

    @property
    def timed_out(self) -> bool:
        return bool(self.errors) and all(isinstance(e, UpstreamTimeout) for e in self.errors)


class InvalidToken(UpstreamHTTPError):
    def __init__(self, provider: str, message: str):
        super().__init__(provider, 401, message)
