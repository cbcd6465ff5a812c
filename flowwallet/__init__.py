"""Configuration, background jobs, SQLite storage, key encryption and chain event polling for a Flow wallet service."""

__version__ = "0.1.0"