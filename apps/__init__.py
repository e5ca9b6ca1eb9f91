"""Domain apps of the space reservation backend."""
