"""Core infrastructure: configuration, logging, storage, events and wiring."""
