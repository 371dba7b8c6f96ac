"""
Services Package
================
Collaborator-facing operations of the engagement engine.

Usage:
    from engagement.services import get_service

    service = get_service()
    service.predict(raw_features)
"""

from .engagement_service import (
    EngagementService,
    get_service,
    set_service,
    reset_service,
)

__all__ = [
    'EngagementService',
    'get_service',
    'set_service',
    'reset_service',
]
