"""versolve command-line interface."""
