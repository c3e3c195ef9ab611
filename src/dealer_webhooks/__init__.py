"""dealer-webhooks — webhook ingestion and dynamic field-mapping engine."""

__version__ = "0.1.0"
