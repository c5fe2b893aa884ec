"""SafeChat service layer."""
