from .status import router as status_router

__all__ = ["status_router"]
