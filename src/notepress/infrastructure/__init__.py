"""Infrastructure layer — stores, theme loading, rendering, git worker.

This layer depends on the domain layer, stdlib and third-party libs
(Jinja2, markdown-it-py, ruamel.yaml). It must never import from services,
commands, or output.
"""
