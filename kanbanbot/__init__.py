"""Group-chat bot feature logic: games, sign-in, sleep tracking, tarot, word stats and lookups."""

__version__ = "0.1.0"