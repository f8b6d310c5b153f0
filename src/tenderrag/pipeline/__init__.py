from .ingestion import IngestionPipeline
from .tender import build_tender_text

__all__ = ["IngestionPipeline", "build_tender_text"]
