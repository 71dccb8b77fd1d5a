from movecar.web.routers.owner import router as owner_router
from movecar.web.routers.requester import router as requester_router
from movecar.web.routers.session import router as session_router

__all__ = [
    "owner_router",
    "requester_router",
    "session_router",
]
