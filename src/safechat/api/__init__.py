"""SafeChat HTTP API."""
