"""Browser-facing form routes."""
