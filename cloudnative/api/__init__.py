"""HTTP API: application factory, middleware and routes."""
