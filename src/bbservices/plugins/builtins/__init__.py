"""Built-in plugins shipped with bbservices."""
