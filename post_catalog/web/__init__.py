"""Read API for the post catalog."""
