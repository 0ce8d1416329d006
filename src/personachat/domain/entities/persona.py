"""Persona entity."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PersonaConfig:
    """Static character profile loaded from the persona catalog.

    Attributes:
        name: Display name.
        twitter_username: Handle, part of the conversation identity.
        tweet_examples: Example utterances.
        characteristics: Characteristic traits.
        topics: Topics the persona usually talks about.
        language: Language the persona responds in.
    """

    name: str
    twitter_username: str
    tweet_examples: list[str] = field(default_factory=list)
    characteristics: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    language: str = "English"

    @property
    def handle(self) -> str:
        """Persona handle used in conversation identity."""
        return self.twitter_username

    def matches(self, query: str) -> bool:
        """Check if the name or handle contains the query (case-insensitive).

        Args:
            query: Search text.

        Returns:
            True if the persona matches. An empty query matches everything.
        """
        needle = query.strip().lower()
        if not needle:
            return True
        return needle in self.name.lower() or needle in self.twitter_username.lower()
