# Pattern scan engine package initialization
__version__ = '1.0.0'

from .config import ScanConfig
from .scanner import PatternScanner, scan_patterns

__all__ = ['ScanConfig', 'PatternScanner', 'scan_patterns']
