"""Blog posts and comments API."""
