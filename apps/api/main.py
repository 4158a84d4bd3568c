"""FileForge API"""

from app_factory import create_app
from fileforge.config import Settings
from fileforge.utils.logging_setup import setup_logging

settings = Settings()
setup_logging(settings)

app = create_app(settings)
