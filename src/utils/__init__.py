"""Utilities package for the recipe cost engine."""
