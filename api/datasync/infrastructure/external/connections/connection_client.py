"""
Punto unico de lectura de fuentes externas.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from datasync.domain.entities.sync import ExternalConnection
from datasync.infrastructure.external.connections.api_client import ApiSourceClient
from datasync.infrastructure.external.connections.database_client import DatabaseSourceClient
from datasync.shared.constants.sync_constants import ConnectionType
from datasync.shared.exceptions.sync import SourceError


class ConnectionClient:
    """Despacha el fetch al cliente API o SQL segun connection_type."""

    def __init__(
        self,
        *,
        api_client: Optional[ApiSourceClient] = None,
        database_client: Optional[DatabaseSourceClient] = None,
    ) -> None:
        self.api_client = api_client or ApiSourceClient()
        self.database_client = database_client or DatabaseSourceClient()

    def fetch(
        self,
        connection: ExternalConnection,
        query: Optional[str] = None,
        params: Sequence[Any] = (),
    ) -> List[Dict[str, Any]]:
        """
        Retorna los registros crudos de la fuente.

        Raises:
            SourceError: conexion, consulta o respuesta HTTP invalida
        """
        if connection.connection_type == ConnectionType.API.value:
            return self.api_client.fetch(connection)

        if connection.connection_type == ConnectionType.DATABASE.value:
            if not query:
                raise SourceError("Database fetch requires a query")
            return self.database_client.fetch(connection, query, params)

        raise SourceError(f"Unsupported connection type: {connection.connection_type}")
