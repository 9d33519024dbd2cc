"""HTTP API for the Agora application."""
