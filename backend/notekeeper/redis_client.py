"""
Notekeeper Backend — Counter Store Client
===========================================

What:  Builds the redis.asyncio client used by the Admission Gate.
Why:   The rate-limit counter must live outside the process so every server
       instance shares one budget.
When:  Created in the lifespan handler, closed on shutdown.
"""

from redis.asyncio import Redis


def create_redis_client(url: str, timeout: float = 5.0) -> Redis:
    """
    Connects lazily; the first command opens the connection.

    decode_responses=True: sorted-set members come back as str.
    """
    return Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        health_check_interval=30,
    )


async def close_redis_client(client: Redis) -> None:
    await client.aclose()
