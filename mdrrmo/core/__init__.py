"""Core components: caching, configuration, logging and health checks."""
