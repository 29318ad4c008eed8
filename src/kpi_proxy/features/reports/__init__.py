"""Reporting API endpoints for the KPI dashboard

Sales counts, visit totals and stock snapshots read from the managed
database and reduced in-process. All endpoints require the bearer token."""
