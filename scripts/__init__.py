"""Command line entry points for the myops task tools."""
