"""HTTP API layer: routers, dependencies, schemas and exception handlers."""
