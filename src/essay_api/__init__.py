"""
essay-question-api
"""

__version__ = "1.0.0"

from essay_api.config import Settings
from essay_api.main import create_app

__all__ = ["Settings", "create_app", "__version__"]
