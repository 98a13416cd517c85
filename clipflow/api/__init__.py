"""API layer - REST and server-sent event endpoints."""
