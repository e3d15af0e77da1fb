"""notepress — publish a notes workspace as a static site over git."""

__version__ = "0.3.0"
