"""Domain layer: value objects, record schemas and normalization rules."""
