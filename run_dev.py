import asyncio
import sys


def main() -> None:
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

    import uvicorn

    from logout_service.config import get_settings

    uvicorn.run(
        "logout_service.main:app",
        host="0.0.0.0",
        port=get_settings().port,
        reload=True,
    )


if __name__ == "__main__":
    main()
