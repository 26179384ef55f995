"""Filter people records against a free-text search description."""
