"""Per-group, per-module role permissions."""
