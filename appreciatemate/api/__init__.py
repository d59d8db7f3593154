from appreciatemate.api.routes import router

__all__ = ["router"]
