"""Application layer: query shapes, record DTOs, store port and data-layer services."""
