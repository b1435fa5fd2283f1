"""
Cliente de fuentes HTTP/JSON.

Requisitos cubiertos:
- requests
- auth bearer / basic / apikey
- rate-limit/backoff (429, 5xx)
- extraccion de la lista de registros via response_path ("data.items")
"""

from __future__ import annotations

import base64
import json
import time
from typing import Any, Callable, Dict, List, Optional

import requests
from loguru import logger

from datasync.application.services.record_mapper import get_nested_value
from datasync.core.config import settings
from datasync.domain.entities.sync import ExternalConnection
from datasync.shared.constants.sync_constants import ApiAuthType, HTTP_METHODS_WITH_BODY
from datasync.shared.exceptions.sync import SourceError


def build_auth_headers(connection: ExternalConnection) -> Dict[str, str]:
    """Headers de autenticacion segun api_auth_type (vacio si no aplica)."""
    auth_type = (connection.api_auth_type or ApiAuthType.NONE.value).lower()

    if auth_type == ApiAuthType.BEARER.value and connection.api_auth_token:
        return {"Authorization": f"Bearer {connection.api_auth_token}"}

    if auth_type == ApiAuthType.BASIC.value and connection.api_auth_username:
        raw = f"{connection.api_auth_username}:{connection.api_auth_password or ''}"
        encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    if auth_type == ApiAuthType.APIKEY.value and connection.api_auth_apikey_name:
        return {connection.api_auth_apikey_name: connection.api_auth_apikey_value or ""}

    return {}


def build_headers(connection: ExternalConnection) -> Dict[str, str]:
    """
    Content-Type JSON + headers estaticos + auth.

    La auth se aplica al final: pisa un header estatico con el mismo nombre.
    """
    headers = {"Content-Type": "application/json"}
    headers.update({str(k): str(v) for k, v in (connection.api_headers or {}).items()})
    headers.update(build_auth_headers(connection))
    return headers


def extract_records(payload: Any, response_path: Optional[str]) -> List[Any]:
    """
    Desciende por response_path (separado por puntos) y normaliza a lista.

    - lista: se retorna tal cual
    - objeto unico: lista de un elemento
    - null o path inexistente: lista vacia

    Los segmentos numericos indexan listas ("results.0.items").
    """
    data = get_nested_value(payload, response_path) if response_path else payload

    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


class ApiSourceClient:
    """
    Cliente HTTP para conexiones de tipo API.

    Importante:
    - No castea tipos: eso lo decide el mapeo del registro.
    - El body solo se envia en POST/PUT/PATCH.
    """

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: Optional[float] = None,
        max_retries: Optional[int] = None,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout_s = settings.HTTP_TIMEOUT_SECONDS if timeout_s is None else timeout_s
        self._max_retries = settings.HTTP_MAX_RETRIES if max_retries is None else max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._sleep = sleep

    def fetch(self, connection: ExternalConnection) -> List[Any]:
        """Ejecuta el request configurado y retorna la lista de registros."""
        if not connection.api_url:
            raise SourceError("API connection has no api_url configured")

        method = (connection.api_method or "GET").upper()
        headers = build_headers(connection)

        body_kwargs: Dict[str, Any] = {}
        if method in HTTP_METHODS_WITH_BODY and connection.api_body not in (None, ""):
            body_kwargs = self._body_kwargs(connection.api_body)

        logger.info(f"Consultando API {method} {connection.api_url}")
        resp = self._request(method, connection.api_url, headers=headers, **body_kwargs)

        try:
            payload = resp.json()
        except ValueError as e:
            raise SourceError(
                f"API response is not valid JSON: {e}",
                details={"status_code": resp.status_code},
            ) from e

        return extract_records(payload, connection.api_response_path)

    @staticmethod
    def _body_kwargs(body: Any) -> Dict[str, Any]:
        """El body guardado puede ser JSON serializado o un objeto ya parseado."""
        if isinstance(body, (dict, list)):
            return {"json": body}
        try:
            return {"json": json.loads(body)}
        except (TypeError, ValueError):
            return {"data": str(body)}

    def _request(self, method: str, url: str, *, headers: Dict[str, str], **kwargs: Any) -> requests.Response:
        """
        Request HTTP con backoff para 429/5xx.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial con jitter simple.
        - 5xx: exponencial con jitter.
        - 4xx (no 429): error inmediato (config/auth mal).
        """
        for attempt in range(self._max_retries + 1):
            try:
                resp = self._session.request(
                    method=method,
                    url=url,
                    headers=headers,
                    timeout=self._timeout_s,
                    **kwargs,
                )
            except requests.RequestException as e:
                raise SourceError(f"API request failed: {e}") from e

            if 200 <= resp.status_code < 300:
                return resp

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    break

                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        sleep_s = float(retry_after)
                    except ValueError:
                        sleep_s = self._min_backoff_s
                else:
                    base = min(self._max_backoff_s, self._min_backoff_s * (2 ** attempt))
                    sleep_s = base + (0.15 * base)

                logger.warning(
                    f"API respondio {resp.status_code}, reintento {attempt + 1}/{self._max_retries} "
                    f"en {sleep_s:.1f}s"
                )
                self._sleep(sleep_s)
                continue

            break

        raise SourceError(
            f"API request failed: {resp.status_code} {resp.reason or ''}".strip(),
            details={"status_code": resp.status_code, "body": (resp.text or "")[:500]},
        )
