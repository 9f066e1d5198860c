"""Service layer: publication workflows and their tool adapters."""
