import uvicorn

from .config import settings

if __name__ == "__main__":
    uvicorn.run("mineru_relay.app:app", host=settings.HOST, port=settings.PORT)
