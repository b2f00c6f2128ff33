"""owbot - a Discord bot showing Overwatch profile summaries."""

__version__ = "0.1.0"
