"""Pydantic data models for versemint."""
