"""Core infrastructure: configuration, logging, processes and the container runtime."""
