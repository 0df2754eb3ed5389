"""HTTP surface: FastAPI app, routes, schemas and the monitoring session."""
