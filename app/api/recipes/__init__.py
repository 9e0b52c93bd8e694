from .recipes import router as recipes_router

__all__ = ["recipes_router"]
