"""Authentication: token verification and the identity session."""
