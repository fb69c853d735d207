"""Abstract base class for stream resolvers."""

from abc import ABC, abstractmethod
from typing import Optional

from ytdlp_resolver.models.stream import ProbeResult, ResolvedStream, ResolveOptions


class StreamResolver(ABC):
    """Abstract base class for page-URL to stream resolvers."""

    name: str = ""

    @abstractmethod
    def can_handle(self, url: Optional[str]) -> bool:
        """
        Check whether the URL belongs to a host this resolver supports.

        Args:
            url: Page URL to check

        Returns:
            True if the resolver should be asked to resolve the URL
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the resolver can run right now."""
        pass

    @abstractmethod
    async def resolve(
        self, url: Optional[str], options: Optional[ResolveOptions] = None
    ) -> ResolvedStream:
        """
        Resolve a page URL into a playable stream.

        Args:
            url: Page URL
            options: Quality, timeout and metadata options

        Returns:
            ResolvedStream; failures are reported through ``success`` and
            ``error`` rather than raised
        """
        pass

    @abstractmethod
    async def probe(self, url: Optional[str]) -> ProbeResult:
        """
        Query basic metadata without resolving a stream.

        Args:
            url: Page URL

        Returns:
            ProbeResult; failures are reported through ``success`` and
            ``error`` rather than raised
        """
        pass
