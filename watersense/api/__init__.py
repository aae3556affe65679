"""
FastAPI service for sensor nodes, the SMS gateway device and the dashboard.

Provides:
- POST /api/ingest - Reading ingestion and alert evaluation
- GET /api/alerts/sms/select - Claim one pending SMS
- POST /api/alerts/sms/update, /release - Report the send outcome
- GET /health - Service health check
"""

from watersense.api.app import create_app

__all__ = ["create_app"]
