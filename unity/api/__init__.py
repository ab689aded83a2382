"""JSON API routers and the auth dependency chain."""
