"""Web upload service for catalog processing."""
