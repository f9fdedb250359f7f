"""Web API v1 endpoint modules."""
