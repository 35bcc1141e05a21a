"""Core of versolve: the constraint solver and the catalog boundary around it."""
