"""Small pure helpers used across the forum stage."""
