"""
Basic steadfast usage example.

This example demonstrates calling a flaky HTTP endpoint through the default
resilience strategy:
- Starting a local aiohttp server that fails every other request
- Retrying transient aiohttp errors
- Bounding each request with a timeout
- Reading the circuit breaker state afterwards
"""

import asyncio
from datetime import timedelta

import aiohttp
from aiohttp import web

from steadfast import CancellationTokenSource, ResilienceOptions, create_default_strategy
from steadfast.core import CircuitBreakerOptions, RetryOptions, TimeoutOptions


def create_flaky_app():
    counter = {'requests': 0}

    async def handler(request):
        counter['requests'] += 1
        if counter['requests'] % 2:
            return web.Response(status=503, text="temporarily unavailable")
        return web.json_response({'request': counter['requests']})

    app = web.Application()
    app.router.add_get('/data', handler)
    return app


async def basic_example():
    """Demonstrate basic steadfast usage"""
    print("Basic steadfast Example")
    print("=" * 30)

    runner = web.AppRunner(create_flaky_app())
    await runner.setup()
    site = web.TCPSite(runner, '127.0.0.1', 8089)
    await site.start()
    print("✓ Started flaky server on http://127.0.0.1:8089")

    options = ResilienceOptions(
        retry=RetryOptions(max_attempts=2, initial_delay=timedelta(milliseconds=100)),
        circuit_breaker=CircuitBreakerOptions(failure_threshold=3),
        timeout=TimeoutOptions(timeout=timedelta(seconds=2)),
    )
    strategy = create_default_strategy(options)

    try:
        async with aiohttp.ClientSession(raise_for_status=True) as session:

            async def fetch(token):
                async with session.get('http://127.0.0.1:8089/data') as response:
                    return await response.json()

            with CancellationTokenSource() as source:
                for _ in range(3):
                    payload = await strategy.execute(fetch, source.token)
                    print(f"✓ Received {payload}")

        circuit = strategy.strategies[-1]
        print(f"✓ Circuit breaker is {circuit.state.value}")

    except Exception as e:
        print(f"✗ Error: {e}")

    finally:
        await runner.cleanup()

    print("\nBasic example completed!")


if __name__ == "__main__":
    asyncio.run(basic_example())
