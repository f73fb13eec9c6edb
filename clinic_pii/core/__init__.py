"""Core layer: configuration, logging, exceptions and collaborator interfaces."""
