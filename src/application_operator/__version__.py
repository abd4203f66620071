"""Version information for application_operator."""

__version__ = "0.1.0"
