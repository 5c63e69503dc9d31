import logging

from memochat.core.config import settings

logger = logging.getLogger("memochat.access")


def setup_logging(app):
    # Configure logging
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response
