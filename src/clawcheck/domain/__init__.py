"""Report models and rule tables shared by the diagnostic engines."""
