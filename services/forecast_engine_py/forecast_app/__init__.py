"""HTTP server and scheduler for the forecast engine."""
