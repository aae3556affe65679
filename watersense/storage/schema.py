"""Relational schema bootstrap for subscribers, deliveries and calibration."""

import logging

from watersense.storage.database import Database

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
-- Phone numbers that receive alert SMS; deactivated rather than deleted
CREATE TABLE IF NOT EXISTS sms_subscribers (
    id SERIAL PRIMARY KEY,
    phone_number VARCHAR(20) NOT NULL UNIQUE,
    location VARCHAR(100) NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

-- One row per (approved alert, active subscriber).
-- delivery_status: 0 pending, 1 sent, 2 claimed, 3 failed
CREATE TABLE IF NOT EXISTS alert_notifications (
    id SERIAL PRIMARY KEY,
    subscriber_id INTEGER NOT NULL,
    alert_type VARCHAR(50) NOT NULL DEFAULT 'WATER_LEVEL',
    water_level_cm REAL NOT NULL,
    status TEXT NOT NULL CHECK (
        status IN ('CAUTION', 'WARNING', 'DANGER', 'EMERGENCY')
    ),
    channel TEXT NOT NULL DEFAULT 'SMS' CHECK (channel IN ('SMS')),
    message TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    claimed_at TIMESTAMPTZ,
    sent_at TIMESTAMPTZ,
    delivery_status SMALLINT NOT NULL DEFAULT 0
        CHECK (delivery_status IN (0, 1, 2, 3)),
    attempt_count INTEGER NOT NULL DEFAULT 0,
    error_message VARCHAR(255),
    CONSTRAINT fk_alert_subscriber
        FOREIGN KEY (subscriber_id)
        REFERENCES sms_subscribers(id)
        ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_alert_subscriber_id
    ON alert_notifications(subscriber_id);
CREATE INDEX IF NOT EXISTS idx_alert_delivery_status
    ON alert_notifications(delivery_status);
CREATE INDEX IF NOT EXISTS idx_alert_status_sent_at
    ON alert_notifications(status, sent_at DESC);

-- Per-sensor calibration applied by the dashboard
CREATE TABLE IF NOT EXISTS sensorsetting (
    id SERIAL PRIMARY KEY,
    sensorid INTEGER NOT NULL UNIQUE,
    calib_offset REAL NOT NULL DEFAULT 0,
    calib_scale REAL NOT NULL DEFAULT 1,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


async def create_tables(database: Database) -> None:
    """
    Create database tables if they don't exist.

    Idempotent; safe to run on every deploy.
    """
    await database.execute(SCHEMA_SQL)
    logger.info("Database schema ensured")
