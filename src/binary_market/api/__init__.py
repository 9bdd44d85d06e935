"""Read-only HTTP surface over the event journal."""
