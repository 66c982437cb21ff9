"""
HTML sanitizer.

Reduces raw markup to the part that matters for form analysis so the text
handed to the inference service stays small:

1. script / style / noscript / meta / link elements are removed.
2. Only the inner markup of <body> is kept.
3. Whitespace runs collapse to a single space.

Sanitization must never make analysis impossible: when the body cannot be
located, or anything goes wrong, the original input is returned unchanged.
"""

import logging
import re

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

NON_SEMANTIC_SELECTOR = 'script, style, noscript, meta, link'

_WHITESPACE = re.compile(r'\s+')


def sanitize(raw_markup: str) -> str:
    """
    Extract the compact interactive region of an HTML document.

    Args:
        raw_markup: Raw HTML text

    Returns:
        Whitespace-collapsed inner HTML of <body>, or ``raw_markup``
        unchanged if the body is missing or parsing fails.
    """
    try:
        # html.parser keeps the tree as written: no synthetic <body> is
        # added to bare fragments
        soup = BeautifulSoup(raw_markup, 'html.parser')
        for element in soup.select(NON_SEMANTIC_SELECTOR):
            element.decompose()

        body = soup.body
        if body is None:
            return raw_markup

        inner = body.decode_contents()
        return _WHITESPACE.sub(' ', inner).strip()

    except Exception as e:
        logger.warning(f"HTML sanitization failed, using original markup: {e}")
        return raw_markup
