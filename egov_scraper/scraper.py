"""Listing and detail page readers built on the fragment extractor.

Markers here are the portal's markup contract. Each lookup is narrowed to the
enclosing fragment first (table, tbody, row, cell) so same-name nesting
elsewhere on the page cannot confuse the extractor.
"""

import logging
from typing import List

from .errors import NoTableFound, ReferenceNumberMissing
from .fragments import FragmentNotFound, extract_all, extract_one
from .models import FilingDetail

logger = logging.getLogger("egov_scraper")

TABLE_MARKER = "<table class='table valign-middle js-egov-requests-table'>"
STATUS_COLUMN = 1
LINK_COLUMN = 3

REFERENCE_LABEL = "到達番号:"
DOCUMENTS_MARKER = "<div class='documents'>"
COMMENTS_MARKER = "<div class='comments'>"


def collapse_newlines(html: str) -> str:
    """Join lines so tags split across lines become contiguous."""
    return html.replace("\r", "").replace("\n", "")


def _href(fragment: str) -> str:
    return extract_one(fragment, 'href="', '"')


def _row_status(cell: str) -> str:
    span = extract_one(cell, "<span", "/span>")
    return extract_one(span, ">", "<")


def list_matching_detail_links(html: str, target_status: str) -> List[str]:
    """Detail-page links of every listing row whose status is ``target_status``.

    Raises NoTableFound when the results table is absent. Returns an empty
    list without scanning rows when the status text appears nowhere in the table.
    """
    html = collapse_newlines(html)
    try:
        table = extract_one(html, TABLE_MARKER, "</table>")
    except FragmentNotFound:
        raise NoTableFound("results table not found on listing page")

    if target_status not in table:
        logger.info(f"No rows with status {target_status!r}")
        return []

    try:
        tbody = extract_one(table, "<tbody>", "</tbody>")
    except FragmentNotFound:
        logger.warning("Results table has no <tbody>, markup may have changed")
        return []

    links = []
    for row in extract_all(tbody, "<tr", "</tr>"):
        matched = False
        for index, cell in enumerate(extract_all(row, "<td", "</td>")):
            if index == STATUS_COLUMN:
                try:
                    matched = _row_status(cell) == target_status
                except FragmentNotFound:
                    break
                if not matched:
                    break
            elif index == LINK_COLUMN and matched:
                try:
                    link = _href(extract_one(cell, "<a", "</a>"))
                except FragmentNotFound:
                    logger.warning("Matching row has no detail link")
                    break
                if link not in links:
                    links.append(link)
                break
    return links


def extract_reference_number(html: str) -> str:
    try:
        raw = extract_one(html, REFERENCE_LABEL, "<")
    except FragmentNotFound:
        raise ReferenceNumberMissing(f"{REFERENCE_LABEL} not found on detail page")
    number = raw.strip()
    if not number:
        raise ReferenceNumberMissing(f"{REFERENCE_LABEL} is empty")
    return number


def container_links(html: str, marker: str) -> List[str]:
    """hrefs of the anchors inside a ``<div>`` container; empty when absent."""
    try:
        container = extract_one(html, marker, "</div>")
    except FragmentNotFound:
        return []
    links = []
    for anchor in extract_all(container, "<a", "</a>"):
        try:
            links.append(_href(anchor))
        except FragmentNotFound:
            continue
    return links


def parse_detail_page(html: str) -> FilingDetail:
    html = collapse_newlines(html)
    detail = FilingDetail(reference_number=extract_reference_number(html))

    if DOCUMENTS_MARKER in html:
        detail.documents = container_links(html, DOCUMENTS_MARKER)
    else:
        logger.info(f"[{detail.reference_number}] No official documents")

    if COMMENTS_MARKER in html:
        detail.comments = container_links(html, COMMENTS_MARKER)
    else:
        logger.info(f"[{detail.reference_number}] No comment notifications")

    return detail
