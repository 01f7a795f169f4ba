"""Core module for the bandsync application."""

from .types import EDITOR_ROLES, APIResponse, Module, Role

__all__ = ["APIResponse", "Module", "Role", "EDITOR_ROLES"]
