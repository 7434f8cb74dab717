"""Fetching infrastructure: HTTP client, headless browser, HTML parsing, workers."""
