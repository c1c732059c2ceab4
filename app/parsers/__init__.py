"""Scraping side of the harvester: document tree, sanitizers and extractors."""
