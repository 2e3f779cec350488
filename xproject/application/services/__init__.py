from xproject.application.services.toolchain_resolution import resolve_toolchain

__all__ = ["resolve_toolchain"]
