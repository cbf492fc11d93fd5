"""
Async Redis clients for the shared response cache.

redis.asyncio connections are tied to the loop that opened them, so one
client (and pool) is kept per running event loop.
"""
from redis import asyncio as aioredis
from redis.asyncio.connection import ConnectionPool as AsyncConnectionPool
from tvguide.core.config import settings
import asyncio
import logging
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)

_redis_async_by_loop: Dict[str, aioredis.Redis] = {}
_async_pool_by_loop: Dict[str, AsyncConnectionPool] = {}

def _current_loop_key() -> str:
	try:
		loop = asyncio.get_running_loop()
		return f"loop-{id(loop)}"
	except RuntimeError:
		# No running loop (sync context)
		return f"thread-{threading.get_ident()}"

def get_redis(url: Optional[str] = None) -> aioredis.Redis:
	"""Get the async Redis client bound to the current event loop."""
	key = _current_loop_key()
	client = _redis_async_by_loop.get(key)
	if client is not None:
		return client

	pool = AsyncConnectionPool.from_url(
		url or settings.redis_url,
		decode_responses=True,
		max_connections=20,
		socket_connect_timeout=5,
		socket_timeout=5,
	)
	client = aioredis.Redis(connection_pool=pool)
	_async_pool_by_loop[key] = pool
	_redis_async_by_loop[key] = client
	return client

async def close_redis() -> None:
	"""Close the client opened on the current loop, if any."""
	key = _current_loop_key()
	client = _redis_async_by_loop.pop(key, None)
	pool = _async_pool_by_loop.pop(key, None)
	if client is None:
		return
	try:
		await client.aclose()
		if pool is not None:
			await pool.disconnect()
	except Exception as e:
		logger.warning(f"Error closing Redis client: {e}")
