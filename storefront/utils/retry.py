# storefront/utils/retry.py
import smtplib

import redis
import requests
import stripe
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from storefront.utils.settings import RetryConfig


def bounded_retry(config: RetryConfig, *exc_types: type[BaseException]):
    return retry(
        reraise=True,
        stop=stop_after_attempt(config.attempts),
        wait=wait_exponential(multiplier=config.min_wait, min=config.min_wait, max=config.max_wait),
        retry=retry_if_exception_type(exc_types),
    )


def http_retry(config: RetryConfig):
    return bounded_retry(config, requests.ConnectionError, requests.Timeout)


#tylko bledy polaczenia i rate limit, karta odrzucona itp. nie ma sensu powtarzac
def stripe_retry(config: RetryConfig):
    return bounded_retry(config, stripe.APIConnectionError, stripe.RateLimitError)


def smtp_retry(config: RetryConfig):
    return bounded_retry(
        config,
        smtplib.SMTPServerDisconnected,
        smtplib.SMTPConnectError,
        ConnectionError,
        TimeoutError,
    )


def redis_retry(config: RetryConfig):
    return bounded_retry(config, redis.RedisError)
