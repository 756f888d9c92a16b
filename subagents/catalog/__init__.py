"""Catalog side: file-backed store, GitHub sync, telemetry ingestion and category back-fill."""
