"""Utility helpers for modeldb."""
