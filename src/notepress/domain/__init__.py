"""Domain layer — fields, themes, pages, site and articles.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
