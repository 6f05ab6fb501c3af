"""Persistent canonical state: projects, templates and global settings."""
