"""JSON schemas used to validate cumulus inputs."""
