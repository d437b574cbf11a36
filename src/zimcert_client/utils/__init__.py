"""Utility modules for the API client core."""
