"""Groups, join codes and membership."""
