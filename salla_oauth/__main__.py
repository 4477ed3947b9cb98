"""
Run the example app: python -m salla_oauth
"""
import uvicorn

from salla_oauth.config import get_settings
from salla_oauth.main import create_app


def main():
    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
