"""Domain services: caching, rate limiting, classification, votes and notifications."""
