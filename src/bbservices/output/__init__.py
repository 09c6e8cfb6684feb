"""Output rendering for the bbservices CLI."""
