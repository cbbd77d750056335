"""HTTP API for the community hub."""
