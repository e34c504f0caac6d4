"""Core settings."""
