"""HTTP clients for the ETL server."""

from etl_base.clients.transport import TransportClient

__all__ = ["TransportClient"]
