"""Finance records and their filtering."""
