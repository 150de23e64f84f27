"""Widget extension logic: markup extraction, definition documents, source patches."""
