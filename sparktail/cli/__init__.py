"""sparktail command line interface."""
