import os
import logging
from typing import Any, Mapping, Optional
from urllib.parse import urljoin

import requests
from dotenv import load_dotenv

from ..prize_draw.digits import normalize_digest

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_PATH = "/api/v1/blocks/latest"


class ChainEntropySource:
    """Entropy source reading the hash of the latest block from a chain API.

    The block hash is public and can be influenced by whoever orders blocks, so
    this source offers no manipulation resistance. It only guarantees a fresh
    value per settlement.
    """

    def __init__(
        self,
        base_fqdn: Optional[str] = None,
        *,
        block_path: Optional[str] = None,
        timeout: int = 45,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        fqdn = base_fqdn or os.getenv("ENTROPY_BASE_FQDN")
        if not fqdn:
            raise ValueError("Environment variable 'ENTROPY_BASE_FQDN' is not set")

        self.base_url = f"https://{fqdn}".rstrip("/")
        self.block_path = block_path or os.getenv("ENTROPY_BLOCK_PATH", DEFAULT_BLOCK_PATH)
        self.timeout = timeout
        self.session = session or requests.Session()
        self._token = os.getenv("ENTROPY_API_TOKEN")

    # -------- headers --------
    @property
    def headers(self) -> Mapping[str, str]:
        if self._token:
            # Never log the token value
            return {"Accept": "application/json", "Authorization": f"Bearer {self._token}"}
        return {"Accept": "application/json"}

    # -------- core request --------
    def _request(self, method: str, path: str) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=self.headers,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    def latest_block(self) -> dict:
        """Return the latest block payload as reported by the chain API."""
        try:
            payload = self._request("GET", self.block_path)
        except requests.RequestException as e:
            logger.critical(f"Error occurred while fetching the latest block: {e}")
            raise RuntimeError(f"Failed to fetch latest block: {e}") from e
        if not isinstance(payload, dict):
            raise RuntimeError(f"Unexpected latest block response: {payload!r}")
        return payload

    def block_entropy(self) -> str:
        """Return the latest block hash as 64 lower-case hex characters.

        Raises
        ------
        RuntimeError
            If the request fails or the response carries no usable hash.
        """
        block = self.latest_block()
        block_hash = block.get("hash")
        if not block_hash:
            raise RuntimeError("Latest block response did not include a hash")
        try:
            digest = normalize_digest(block_hash)
        except (TypeError, ValueError) as e:
            raise RuntimeError(f"Latest block hash is not a 256-bit hex value: {e}") from e
        logger.debug(f"Using block {block.get('height')} as entropy")
        return digest


__all__ = ["ChainEntropySource", "DEFAULT_BLOCK_PATH"]
