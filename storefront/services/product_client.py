# storefront/services/product_client.py
import requests
from requests import RequestException

from storefront.domain.errors import UpstreamError
from storefront.utils.retry import http_retry
from storefront.utils.settings import PRODUCT_SERVICE_URL, RetryConfig
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """Klient katalogu produktow (zewnetrzny product-service)."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int = 2,
        retry_config: RetryConfig | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self.session = session or requests.Session()

    def _get(self, url: str) -> requests.Response:
        logger.info(f"ProductClient GET {url}")
        return self.session.get(url, timeout=self.timeout)

    def fetch_product(self, product_id: int) -> dict | None:
        """Zwraca produkt albo None gdy katalog go nie zna (404)."""
        url = f"{self.base_url}/products/{product_id}"

        try:
            resp = http_retry(self.retry_config)(self._get)(url)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            return resp.json()
        except RequestException as e:
            logger.error(f"Product service failed for product {product_id}: {e}")
            raise UpstreamError("product-service", str(e)) from e
