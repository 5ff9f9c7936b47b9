"""ProbeScope command line interface."""
