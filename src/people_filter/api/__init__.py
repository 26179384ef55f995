"""Tool endpoint HTTP server."""
