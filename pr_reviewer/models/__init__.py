"""Review data models."""
