"""HTTP host for the self-healing monitor."""
