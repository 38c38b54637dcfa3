"""Core engine — models, persistence, services, and use cases."""
