"""Domain layer: entities, services and repository contracts."""
