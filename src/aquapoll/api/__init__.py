"""FastAPI routers for control, sensor and system endpoints."""
