"""Upstream protocol clients."""
