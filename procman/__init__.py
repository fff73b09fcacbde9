"""Domain errors, simple loggers, restart settings and process state records."""

__version__ = "0.1.0"