"""Core domain package for wabridge.

Core contains event classification, content resolution and the outbound send
pipeline without any host-runtime or transport-specific code, keeping the
decision logic portable across host adapters.
"""
