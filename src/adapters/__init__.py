"""Adapters connecting the core engine to a desktop shell, a terminal, or a
recorded signal log."""
