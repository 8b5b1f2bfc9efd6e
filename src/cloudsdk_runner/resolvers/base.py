"""Cascading lookup of the Cloud SDK installation directory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path


class SdkNotFoundError(RuntimeError):
    """Raised when no Cloud SDK installation can be located."""


class SdkResolver(ABC):
    """Strategy that may know where the Cloud SDK is installed."""

    @property
    @abstractmethod
    def rank(self) -> int:
        """Priority of this resolver; lower ranks are consulted first."""

    @abstractmethod
    def get_sdk_path(self) -> Path | None:
        """Return the SDK root, or None when this resolver has no opinion."""


class ResolverChain:
    """Ordered set of resolvers consulted until one produces a path.

    Resolvers are sorted by rank once, at construction. Resolvers with the same
    rank keep the order in which they were supplied.
    """

    def __init__(self, resolvers: Iterable[SdkResolver]) -> None:
        self._resolvers = tuple(sorted(resolvers, key=lambda resolver: resolver.rank))

    @property
    def resolvers(self) -> tuple[SdkResolver, ...]:
        return self._resolvers

    def resolve(self) -> Path | None:
        """Return the first path produced by a resolver, or None."""

        for resolver in self._resolvers:
            path = resolver.get_sdk_path()
            if path is not None:
                return path
        return None
