"""HTTP API for the federation subsystem."""
