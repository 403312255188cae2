"""Version resolution: listing parser, filter chain and base image lookup."""

from .errors import FetchError, NoCandidatesError, NoImageTagError, ResolutionError
from .fetchers import HttpIndexFetcher, IndexFetcher
from .models import PackageArtifact, ResolutionConstraints, TagEntry
from .resolver import VersionResolver

__all__ = [
    "FetchError",
    "HttpIndexFetcher",
    "IndexFetcher",
    "NoCandidatesError",
    "NoImageTagError",
    "PackageArtifact",
    "ResolutionConstraints",
    "ResolutionError",
    "TagEntry",
    "VersionResolver",
]
