"""hackfeed — content lifecycle and deduplication engine for the hacks feed."""

__version__ = "0.1.0"
