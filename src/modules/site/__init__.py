"""Site wide wiring and navigation."""

from src.modules.site.navigation import Navigation, NavigationService
from src.modules.site.services import Services, build_services

__all__ = [
    "Navigation",
    "NavigationService",
    "Services",
    "build_services",
]
