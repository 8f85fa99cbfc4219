"""GitHub Org Sync - mirror a GitHub organization into a relational store."""

__version__ = "0.1.0"
