"""Launch the relay with uvicorn."""
import uvicorn

from . import config


def main():
    uvicorn.run(
        "threat_relay.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=False,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
