"""Pure scheduling and session logic."""
