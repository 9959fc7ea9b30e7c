import redis
from redis.exceptions import RedisError

from storefront.domain.errors import RateLimitedError
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, RetryConfig
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#INCR + EXPIRE atomowo w lua, licznik startuje z TTL okna przy pierwszym trafieniu
_HIT_LUA = """
local current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return current
"""


class RateLimiter:
    """
    -limit prob checkoutu na uzytkownika w oknie czasowym
    -awaria redisa nie blokuje zakupow (fail open + warning)
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int = 60,
        url: str | None = None,
        client=None,
        retry_config: RetryConfig | None = None,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.retry_config = retry_config or RetryConfig()

    def _hit(self, key: str) -> int:
        return int(self.redis.eval(_HIT_LUA, 1, key, self.window_seconds))

    def check(self, scope: str, identity) -> None:
        key = f"ratelimit:{scope}:{identity}"

        try:
            count = redis_retry(self.retry_config)(self._hit)(key)
        except RedisError as e:
            logger.warning(f"Rate limiter unavailable for {key}, allowing request: {e}")
            return

        if count > self.limit:
            logger.info(f"Rate limit exceeded for {key} ({count}/{self.limit})")
            raise RateLimitedError("Zbyt wiele prób, spróbuj ponownie za minutę")
