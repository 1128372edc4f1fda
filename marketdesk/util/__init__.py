"""Small helpers shared by the route handlers."""
