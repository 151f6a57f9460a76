"""
ASGI entry point.

    uvicorn schedulen.app:app
"""

from schedulen.api.main import create_app, run_server
from schedulen.config import get_settings

app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    run_server(host=settings.api_host, port=settings.api_port, reload=settings.api_reload)
