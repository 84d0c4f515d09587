from scholarsync.health.router import router


__all__ = ["router"]
