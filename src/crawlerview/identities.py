"""Registry of simulated crawler identities."""

from typing import Iterable, Iterator, Mapping, Optional, Union

from crawlerview.models import CrawlerIdentity


# Reference deployment, in test order
AI_CRAWLERS = (
    CrawlerIdentity(
        "GPTBot",
        "Mozilla/5.0 AppleWebKit/537.36 (KHTML, like Gecko; compatible; GPTBot/1.0; +https://openai.com/gptbot)",
    ),
    CrawlerIdentity(
        "ClaudeBot",
        "Mozilla/5.0 AppleWebKit/537.36 (KHTML, like Gecko; compatible; Claude-Web/1.0; +support@anthropic.com)",
    ),
    CrawlerIdentity(
        "GoogleBot",
        "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
    ),
    CrawlerIdentity(
        "BingBot",
        "Mozilla/5.0 (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)",
    ),
)


class IdentityRegistry:
    """Ordered, read-only collection of crawler identities keyed by name."""

    def __init__(self, identities: Union[Iterable[CrawlerIdentity], Mapping[str, str]]):
        """Build the registry.

        Args:
            identities: CrawlerIdentity objects, or a name -> User-Agent mapping.
                Registration order is preserved.

        Raises:
            ValueError: If the registry would be empty or a name repeats.
        """
        if isinstance(identities, Mapping):
            identities = [CrawlerIdentity(name, ua) for name, ua in identities.items()]

        ordered = tuple(identities)
        if not ordered:
            raise ValueError("At least one crawler identity is required")

        names = [identity.name for identity in ordered]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate crawler identities: {', '.join(duplicates)}")

        self._identities = ordered
        self._by_name = {identity.name: identity for identity in ordered}

    def __iter__(self) -> Iterator[CrawlerIdentity]:
        return iter(self._identities)

    def __len__(self) -> int:
        return len(self._identities)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[CrawlerIdentity]:
        return self._by_name.get(name)

    @property
    def names(self) -> list[str]:
        return [identity.name for identity in self._identities]

    @property
    def primary(self) -> CrawlerIdentity:
        """First registered identity, used for the robots.txt check."""
        return self._identities[0]

    def as_dict(self) -> dict[str, str]:
        return {identity.name: identity.user_agent for identity in self._identities}


default_registry = IdentityRegistry(AI_CRAWLERS)
