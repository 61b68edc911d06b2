"""funcmap - function inventories for TypeScript and JavaScript sources."""

# Keep in sync with pyproject.toml [project] version.
__version__ = "0.1.0"
