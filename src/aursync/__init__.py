"""
aursync - AUR build-recipe sync and package cache tool.

This package fetches and updates AUR package repositories in parallel
and manages the local pacman package cache.

Modules:
- cli: Command-line interface entry point.
- operations: Core command implementations.
- partition: Classify requested names against local clones and the AUR.
- batch: Parallel execution with failure accumulation.
- sync: Clone and pull AUR repositories.
- cache: Package cache inspection and backup.
- search: AUR search ranking.
- aur: AUR RPC client.
- config: Configuration management.
"""

from .cli import main

__all__ = ["main"]
