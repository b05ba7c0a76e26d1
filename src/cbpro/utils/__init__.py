"""Configuration, logging and timing helpers."""
