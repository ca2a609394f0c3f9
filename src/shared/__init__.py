"""Shared infrastructure used across hackfeed sub-packages."""
