"""FastAPI surface over the insight engine."""
