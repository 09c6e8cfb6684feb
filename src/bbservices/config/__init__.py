"""Configuration — settings, config file lookup, and logging setup."""
