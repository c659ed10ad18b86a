"""Async services that compose engine operations for the routers."""
