"""
Clientes de fuentes externas para el motor de sincronizacion.

- api_client: APIs HTTP/JSON (requests), con auth y backoff ante 429/5xx.
- database_client: bases PostgreSQL (psycopg v3), filas como dict.
- connection_client: despacha segun el tipo de conexion.
"""
