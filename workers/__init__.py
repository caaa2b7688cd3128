"""Background driver for incremental story generation."""
