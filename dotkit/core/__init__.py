"""Core domain: models, static catalog, services, persistence."""
