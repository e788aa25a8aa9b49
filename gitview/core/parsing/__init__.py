"""Parsers for the engine's status, log and branch text.

All three are total: malformed input yields fewer records, never an error.
"""

from gitview.core.parsing.branch_parser import parse_branches
from gitview.core.parsing.log_parser import parse_log
from gitview.core.parsing.status_parser import parse_status

__all__ = ["parse_branches", "parse_log", "parse_status"]
