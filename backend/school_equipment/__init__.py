"""School equipment reservation service."""
