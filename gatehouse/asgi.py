"""ASGI entrypoint: uvicorn gatehouse.asgi:app"""

from dotenv import load_dotenv

load_dotenv()

from gatehouse.core.config import get_settings
from gatehouse.main import configure_logging, create_app

configure_logging(get_settings())

app = create_app()
