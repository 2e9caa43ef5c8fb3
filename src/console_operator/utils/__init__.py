"""Utility modules for the console operator."""
