"""Shared utilities for keycache."""
