"""Operational scripts for Campfire Stage."""
