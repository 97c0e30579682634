"""Concrete collaborators: the YAML registry and the git backend."""
