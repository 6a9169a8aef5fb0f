"""Utilities shared by the cumulus service clients."""
