"""Packaged settings templates."""
