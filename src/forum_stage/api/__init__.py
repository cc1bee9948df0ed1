"""HTTP API for the forum stage."""
