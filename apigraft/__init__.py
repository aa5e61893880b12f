"""Schema compiler for OpenAPI and GraphQL sources."""

__version__ = "0.1.0"
