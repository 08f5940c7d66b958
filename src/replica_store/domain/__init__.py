"""Domain layer: entities, errors and placement/replication services."""
