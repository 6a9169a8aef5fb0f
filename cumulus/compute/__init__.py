"""Provider-neutral compute: templates, nodes and per-provider strategies."""
