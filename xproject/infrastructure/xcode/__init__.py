from xproject.infrastructure.xcode.xcode_client import XcodeClient

__all__ = ["XcodeClient"]
