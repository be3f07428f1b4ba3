"""Infrastructure layer: persistence, channel adapters and directory lookups."""
