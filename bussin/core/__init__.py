"""Core engine — models, persistence, configuration and orchestration."""
