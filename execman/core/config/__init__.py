"""Configuration — locations and user defaults."""
