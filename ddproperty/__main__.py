import uvicorn

from ddproperty.config import settings


def main():
    uvicorn.run(
        "ddproperty.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()
