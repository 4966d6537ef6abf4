"""Helpers shared by the webhook handlers."""
