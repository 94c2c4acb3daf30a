# psb/routers/__init__.py

from .auth.auth_router import router as auth_router

from .psb.psb_order_router import router as psb_order_router


__all__ = [
"auth_router",

"psb_order_router",
]
