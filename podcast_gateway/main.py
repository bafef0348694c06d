import uvicorn

from podcast_gateway.core.app_factory import create_app
from podcast_gateway.core.config import settings

app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=settings.app.host, port=settings.app.port, log_config=None)
