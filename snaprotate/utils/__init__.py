"""Configuration, durations, timing and startup helpers."""
