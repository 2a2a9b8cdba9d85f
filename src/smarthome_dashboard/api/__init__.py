"""Dashboard API services."""
