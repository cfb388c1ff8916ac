"""Domain layer: enums and exceptions."""
