"""ASGI entrypoint: ``uvicorn chat_proxy.main:app``."""

from chat_proxy.core.app_factory import create_app

app = create_app()
