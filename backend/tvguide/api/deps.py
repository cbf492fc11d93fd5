"""
Request-scoped accessors for the clients built at startup.
"""
from fastapi import Request

from tvguide.core.config import Settings
from tvguide.services.justwatch_client import JustWatchClient
from tvguide.services.llm_client import SynopsisGenerator
from tvguide.services.tmdb_client import TMDBClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_tmdb_client(request: Request) -> TMDBClient:
    return request.app.state.tmdb


def get_justwatch_client(request: Request) -> JustWatchClient:
    return request.app.state.justwatch


def get_synopsis_generator(request: Request) -> SynopsisGenerator:
    return request.app.state.synopsis_generator
