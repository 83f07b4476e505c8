# ==============================================
# PERSISTENCE: EXPORTS
# ==============================================
#
# The engine keeps datasets in memory only. This package writes the
# derived views (and optionally the raw records) to JSON files a
# dashboard can offer for download, and reads them back.
#
# Modules:
# --------
# - export_store.py  → build_export_payload() + ExportStore + ExportedRecords
#
# ==============================================

from .export_store import ExportedRecords, ExportStore, build_export_payload

__all__ = ["ExportedRecords", "ExportStore", "build_export_payload"]
