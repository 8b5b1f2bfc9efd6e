"""Cloud SDK location resolvers."""

from cloudsdk_runner.resolvers.base import ResolverChain, SdkNotFoundError, SdkResolver
from cloudsdk_runner.resolvers.builtin import (
    EnvironmentResolver,
    FixedPathResolver,
    PathResolver,
    WellKnownLocationsResolver,
    default_resolver_chain,
    default_resolvers,
)

__all__ = [
    "EnvironmentResolver",
    "FixedPathResolver",
    "PathResolver",
    "ResolverChain",
    "SdkNotFoundError",
    "SdkResolver",
    "WellKnownLocationsResolver",
    "default_resolver_chain",
    "default_resolvers",
]
