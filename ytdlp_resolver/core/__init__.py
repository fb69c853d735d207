"""Core infrastructure: process execution, configuration, logging and tool management."""
