"""taskdesk: task records with interchangeable volatile/SQLite storage."""

__version__ = "0.1.0"
