# =======================================================================================
# gatepass/workers/__init__.py - Workers Package
# =======================================================================================
from .scanner_worker import ScannerWorker, create_response_message

__all__ = ["ScannerWorker", "create_response_message"]
