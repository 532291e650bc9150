"""harbor-cli: containerize a project and migrate it to a staging host."""

__version__ = "1.0.0"
