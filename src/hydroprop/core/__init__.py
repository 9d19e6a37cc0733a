"""Core infrastructure: configuration, logging, events and errors."""
