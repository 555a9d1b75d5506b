"""Service layer: application services and the container wiring them together."""
