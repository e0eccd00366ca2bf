"""Errors and user hints shared across the client."""
