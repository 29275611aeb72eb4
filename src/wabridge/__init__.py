"""wabridge: event normalization and outbound commands for a hosted web client."""

__version__ = "0.1.0"
