"""Balance tracking."""
