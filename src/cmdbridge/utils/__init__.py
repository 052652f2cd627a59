"""Shared helpers for cmdbridge."""
