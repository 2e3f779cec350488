from xproject.infrastructure.toolchain.xcode_locator import XcodeLocator, select_toolchain

__all__ = ["XcodeLocator", "select_toolchain"]
