"""ECPP Bridge command-line entry points."""
