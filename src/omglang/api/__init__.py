"""REST API for the OMG language service."""
