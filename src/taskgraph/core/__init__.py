"""Core packages: task store, dependency graph engine, config and services."""
