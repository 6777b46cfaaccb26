"""Login provider discovery.

The service-URLs endpoint lists the identity providers (the primary partner
plus alliance partners) together with their streaming service URLs.
:func:`fetch_providers` turns that payload into
:class:`~opennow.models.LoginProvider` records ordered by priority.

Discovery is best-effort: any transport error, non-2xx status, malformed
payload, or empty list yields ``[PRIMARY_PARTNER]`` and a logged warning,
so a login attempt can always proceed.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from opennow.models import PRIMARY_PARTNER, LoginConfig, LoginProvider

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36 "
    "NVIDIACEFClient/HEAD/debb5919f6 GFN-PC/2.0.80.173"
)

# Provider codes whose advertised display name is replaced.
_DISPLAY_NAME_OVERRIDES = {"BPC": "bro.game"}


def parse_service_urls(payload: dict[str, Any]) -> list[LoginProvider]:
    """Map a service-URLs response body to providers sorted by priority.

    Entries that fail validation (for example an empty provider code) are
    skipped.

    Args:
        payload: Decoded JSON body of the service-URLs endpoint.

    Returns:
        Providers in ascending ``priority`` order; may be empty.
    """
    info = payload.get("gfnServiceInfo") or {}
    endpoints = info.get("gfnServiceEndpoints") or []

    providers: list[LoginProvider] = []
    for entry in endpoints:
        if not isinstance(entry, dict):
            continue
        code = entry.get("loginProviderCode", "")
        display_name = _DISPLAY_NAME_OVERRIDES.get(
            code, entry.get("loginProviderDisplayName", "")
        )
        try:
            providers.append(
                LoginProvider(
                    idp_id=entry.get("idpId", ""),
                    code=code,
                    display_name=display_name,
                    provider=entry.get("loginProvider") or display_name,
                    streaming_service_url=entry.get("streamingServiceUrl", ""),
                    priority=entry.get("loginProviderPriority") or 0,
                )
            )
        except ValidationError as exc:
            logger.debug("Skipping invalid provider entry %r: %s", entry, exc)

    providers.sort(key=lambda p: p.priority)
    return providers


def fetch_providers(
    config: LoginConfig | None = None, timeout: float = 10.0
) -> list[LoginProvider]:
    """Fetch the available login providers, falling back to the primary partner.

    Args:
        config: Supplies ``service_urls_endpoint``.
        timeout: HTTP timeout in seconds.

    Returns:
        A non-empty list of providers, sorted by priority.
    """
    config = config or LoginConfig()
    try:
        response = httpx.get(
            config.service_urls_endpoint,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            timeout=timeout,
        )
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "Provider list request failed with status %d, using default",
            exc.response.status_code,
        )
        return [PRIMARY_PARTNER]
    except httpx.HTTPError as exc:
        logger.warning("Failed to fetch providers, using default: %s", exc)
        return [PRIMARY_PARTNER]
    except ValueError as exc:
        logger.warning("Failed to parse providers response, using default: %s", exc)
        return [PRIMARY_PARTNER]

    if not isinstance(payload, dict):
        logger.warning("Unexpected providers response shape, using default")
        return [PRIMARY_PARTNER]

    providers = parse_service_urls(payload)
    if not providers:
        logger.warning("Provider list was empty, using default")
        return [PRIMARY_PARTNER]

    logger.debug("Loaded %d providers", len(providers))
    return providers


def select_provider(
    providers: list[LoginProvider], code: str
) -> Optional[LoginProvider]:
    """Return the provider whose code matches *code* case-insensitively, if any."""
    wanted = code.strip().upper()
    for provider in providers:
        if provider.code.upper() == wanted:
            return provider
    return None
