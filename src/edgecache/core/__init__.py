"""Core primitives: settings, logging, errors, backoff and the cache itself."""
