"""Domain layer: entities and error taxonomy."""
