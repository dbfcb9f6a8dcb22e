"""Seating pressure monitoring services: recording ingestion and playback API."""
