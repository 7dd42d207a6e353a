"""HTTP API for the Campfire service."""
