"""Flask JSON API for the maintenance schedule."""
