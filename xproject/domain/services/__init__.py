from xproject.domain.services.command_builder import ExportPlan, XcodebuildStep

__all__ = ["ExportPlan", "XcodebuildStep"]
