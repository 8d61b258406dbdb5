"""Two-way synchronization between a local event store and Google Calendar."""

__version__ = "0.1.0"
