"""
run the reqmetrics demo service
"""

if __name__ == "__main__":
    import uvicorn

    from reqmetrics.config import settings

    uvicorn.run(
        "reqmetrics.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
