"""
Type definitions and dataclasses for PDF Manager.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass
class OperationResult:
    """
    Result of an operation that wrote a PDF file.

    Attributes:
        operation: Name of the operation performed (e.g. ``"merge"``)
        output: Path of the written file
        page_count: Number of pages in the written file
        pages: Page numbers of the source the operation acted on
    """
    operation: str
    output: Path
    page_count: int
    pages: List[int] = field(default_factory=list)

    def __str__(self) -> str:
        return f"OperationResult(operation={self.operation!r}, pages={self.page_count}, output='{self.output}')"
