"""Host and output-channel adapters that satisfy the core ports."""
