"""
Result extraction from the analyzer's HTML report.

The D-10 report is a plain HTML table with one row per sample. Cells are
located by position, so a change of the report layout on the analyzer side
silently moves the values; the positions are kept in a ColumnMapping so the
dependency is explicit.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from analyzer_bridge.domain.model import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnMapping:
    """Cell positions of the report table (0-based)."""
    sample_id_column: int = 3
    value_column: int = 5
    min_cells: int = 6      # rows with fewer cells are headers, footers or malformed


DEFAULT_COLUMNS = ColumnMapping()

Document = Union[str, bytes, BeautifulSoup, Tag, None]


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text(" ").split())


def parse_document(document: Document) -> Optional[Union[BeautifulSoup, Tag]]:
    """Turn raw report HTML into a parsed tree. Returns None for empty input."""
    if document is None:
        return None
    if isinstance(document, (BeautifulSoup, Tag)):
        return document
    if isinstance(document, bytes):
        document = document.decode("utf-8", errors="replace")
    if not document.strip():
        return None
    return BeautifulSoup(document, "lxml")


def extract_results(document: Document, mapping: ColumnMapping = DEFAULT_COLUMNS) -> List[Result]:
    """
    Extract (sample id, HbA1c value) pairs from a report, in row order.

    Never raises on malformed markup: rows that do not have enough cells are
    skipped, and a parser failure returns whatever was extracted before it.

    Args:
        document: Raw report HTML, an already parsed tree, or None
        mapping: Cell positions of the sample id and value

    Returns:
        List of Result; empty when the report holds no sample rows
    """
    logger.info("Extracting Sample ID and HbA1c percentage from HTML content")
    results: List[Result] = []

    try:
        tree = parse_document(document)
        if tree is None:
            logger.info("Empty response from analyzer, no results")
            return results

        for index, row in enumerate(tree.select("table tr")):
            cells = row.find_all("td")
            if len(cells) < mapping.min_cells:
                logger.debug(f"Skipping row {index} with {len(cells)} cells")
                continue

            results.append(
                Result(
                    sample_id=_cell_text(cells[mapping.sample_id_column]),
                    value=_cell_text(cells[mapping.value_column]),
                )
            )
    except Exception as e:
        logger.error(f"Exception occurred while extracting sample data: {e}", exc_info=True)

    logger.info(f"Extracted {len(results)} result(s) from report")
    return results
