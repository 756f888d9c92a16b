"""GitHub access: identifier resolution, HTTP client and content location."""
