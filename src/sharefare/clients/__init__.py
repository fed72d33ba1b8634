"""HTTP clients for the ShareFare API."""
