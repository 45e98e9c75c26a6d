import os
import time
import uuid

from django.core.cache import caches
from django.http import JsonResponse

from .logger import get_logger

try:
    import redis as redis_lib  # optional; if unavailable we skip redis check
except ImportError:  # pragma: no cover
    redis_lib = None

logger = get_logger(__name__).bind(component='common', layer='health')


def _redis_ping(url: str, timeout: float = 0.3):
    if not redis_lib:
        logger.debug('Redis health check skipped; library missing')
        return {'status': 'skipped', 'detail': 'redis lib not installed'}
    try:
        client = redis_lib.from_url(url, socket_connect_timeout=timeout, socket_timeout=timeout)
        ok = bool(client.ping())
    except Exception as e:  # pragma: no cover - best effort
        logger.warning('Redis health check failed', error=str(e))
        return {'status': 'fail', 'error': str(e)}
    if not ok:
        logger.warning('Redis health check returned unexpected response')
    return {'status': 'ok' if ok else 'fail'}


def _cache_check(alias='default'):
    """Round-trip a throwaway key through the cache the cart store may use."""
    started = time.time()
    key = f'health:{uuid.uuid4().hex}'
    try:
        cache = caches[alias]
        cache.set(key, 'ok', timeout=5)
        value = cache.get(key)
        cache.delete(key)
    except Exception as e:
        logger.error('Cache health check failed', alias=alias, error=str(e), exception=e.__class__.__name__)
        return {'status': 'fail', 'error': str(e)}
    latency = round((time.time() - started) * 1000, 2)
    if value != 'ok':
        logger.warning('Cache health check lost the probe value', alias=alias)
        return {'status': 'fail', 'error': 'value not returned'}
    return {'status': 'ok', 'latency_ms': latency}


def live_health(request):
    """Liveness probe: process is up and can service requests."""
    logger.debug('Liveness probe served')
    return JsonResponse({'status': 'alive'})


def ready_health(request):
    """Readiness probe: verifies the cache and, when configured, Redis."""
    checks = {'cache': _cache_check()}

    redis_url = os.getenv('REDIS_URL')
    if redis_url:
        checks['redis'] = _redis_ping(redis_url)
    else:
        checks['redis'] = {'status': 'skipped', 'detail': 'REDIS_URL not set'}

    failing = [name for name, r in checks.items() if r.get('status') == 'fail']
    overall_status = 'ok' if not failing else 'degraded'
    logger.info('Readiness probe evaluated', status=overall_status, failing_components=failing)
    return JsonResponse(
        {'status': overall_status, 'checks': checks},
        status=200 if not failing else 503,
    )
