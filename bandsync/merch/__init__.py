"""Merchandise items and sales."""
