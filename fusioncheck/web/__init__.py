"""Web API for fusioncheck"""

from .server import FusionWebServer

__all__ = ['FusionWebServer']
