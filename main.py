import uvicorn

from app.config import Config, Env


CONFIG = Config()


def main() -> None:
    uvicorn.run(
        "app.app:app",
        host="127.0.0.1" if CONFIG.env == Env.local else "0.0.0.0",
        port=8000,
        reload=CONFIG.env == Env.local,
        log_level=CONFIG.log_level.lower(),
    )


if __name__ == "__main__":
    main()
