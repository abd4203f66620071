"""Service layer wrapping cluster resource operations."""
