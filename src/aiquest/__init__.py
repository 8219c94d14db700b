"""AI Quest API — lesson content and learner progression."""
