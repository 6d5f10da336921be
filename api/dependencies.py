"""
FastAPI dependencies (shared across routes).

The token store and connector are built once in ``main.create_app`` and
kept on ``app.state``; tests assign their own before sending requests.
"""

from __future__ import annotations

from fastapi import Request

from connectors.base import BaseConnector
from connectors.token_manager import TokenStore


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def get_connector(request: Request) -> BaseConnector:
    return request.app.state.connector
