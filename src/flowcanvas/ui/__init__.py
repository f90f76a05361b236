"""Terminal rendering for flowcanvas."""
