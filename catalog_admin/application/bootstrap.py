from __future__ import annotations

from contextlib import asynccontextmanager

from .container import AppConfig, AppContainer, create_container


@asynccontextmanager
async def bootstrap_app(config: AppConfig, **overrides):
    container: AppContainer = create_container(config, **overrides)
    await container.init_resources()
    try:
        yield container
    finally:
        await container.close()
