"""HTTP API — FastAPI app and connectivity routes."""
