"""Maintenance commands for the build-script cache."""
