"""Portfolio API: FastAPI service with a Redis-backed API response cache."""
