"""Use cases — install, update, check, remove, forget, init."""
