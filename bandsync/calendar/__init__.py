"""Calendar events."""
