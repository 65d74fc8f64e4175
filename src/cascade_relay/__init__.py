"""cascade_relay - signal relay daemon for bridge and trade events."""

__version__ = "0.1.0"
