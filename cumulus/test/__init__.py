"""Tests for cumulus."""
