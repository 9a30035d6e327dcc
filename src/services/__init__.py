"""Domain services: reference data, tenders, deliveries and the dashboard."""
