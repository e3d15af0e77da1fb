"""Configuration layer: settings sections, config file lookup and logging setup."""
