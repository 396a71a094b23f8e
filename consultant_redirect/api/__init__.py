"""
API package initialization.

Router modules:
- redirect: public next-redirect / confirm-redirect / redirect-stats endpoints
"""

from consultant_redirect.api.redirect import router as redirect_router

__all__ = [
    "redirect_router",
]
