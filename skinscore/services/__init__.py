"""
Services Module
"""
from .analysis import SkinAnalysisService, AnalysisRecord, get_feng_shui_info

__all__ = ["SkinAnalysisService", "AnalysisRecord", "get_feng_shui_info"]
