"""Setlists."""
