"""Recording ingestion pipeline: frames → metrics → PPI → alerts → persistence."""
