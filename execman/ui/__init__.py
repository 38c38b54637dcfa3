"""User interfaces over the engines."""
