from enjoyrecord.services.providers.base import MAX_RESULTS, ProviderConfig, SearchProvider, redact_url
from enjoyrecord.services.providers.errors import (
    ConfigurationError,
    InvalidToken,
    NoProvidersSucceeded,
    ParseError,
    ProviderError,
    UpstreamHTTPError,
    UpstreamTimeout,
)
from enjoyrecord.services.providers.google_books import GoogleBooksProvider
from enjoyrecord.services.providers.neodb import NeoDBProvider
from enjoyrecord.services.providers.omdb import OMDbProvider
from enjoyrecord.services.providers.open_library import OpenLibraryProvider
from enjoyrecord.services.providers.rawg import RawgProvider
from enjoyrecord.services.providers.steam import SteamProvider
from enjoyrecord.services.providers.tmdb import TMDBProvider

__all__ = [
    "MAX_RESULTS",
    "ConfigurationError",
    "GoogleBooksProvider",
    "InvalidToken",
    "NeoDBProvider",
    "NoProvidersSucceeded",
    "OMDbProvider",
    "OpenLibraryProvider",
    "ParseError",
    "ProviderConfig",
    "ProviderError",
    "RawgProvider",
    "SearchProvider",
    "SteamProvider",
    "TMDBProvider",
    "UpstreamHTTPError",
    "UpstreamTimeout",
    "redact_url",
]
