"""Discord-facing layer: bot class, startup checks and reply delivery."""
