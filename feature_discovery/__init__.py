"""Feature Discovery: read-only structural analysis of React/TypeScript source trees."""

__version__ = "0.3.0"
