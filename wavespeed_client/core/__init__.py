"""Model resolution, task polling and image operations."""
