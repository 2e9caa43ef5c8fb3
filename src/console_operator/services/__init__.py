"""Clients for the external backends driven by the operator."""
