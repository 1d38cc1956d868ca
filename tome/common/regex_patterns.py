"""Common regex patterns used across the pipeline."""

import re
from typing import Pattern


# Filename cleaning patterns
SPACED_DASH_PATTERN: Pattern[str] = re.compile(r'\s+[-–]\s+')
FILENAME_JUNK_PATTERN: Pattern[str] = re.compile(r'[_-]')

# Filename heuristics, group 1 is read as author and group 2 as title
AUTHOR_DASH_TITLE_PATTERN: Pattern[str] = re.compile(r'^(.+?)\s*[-–]\s*(.+)$')
TITLE_PAR_AUTHOR_PATTERN: Pattern[str] = re.compile(r'^(.+?)\s+par\s+(.+)$')
TITLE_PAREN_AUTHOR_PATTERN: Pattern[str] = re.compile(r'^(.+?)\s*\(([^)]+)\)$')
AUTHOR_DASH_TITLE_TOME_PATTERN: Pattern[str] = re.compile(r'^(.+?)\s*[-–]\s*(.+?)\s*[-–]\s*tome\s*\d+', re.IGNORECASE)

# Vision reply scraping, used when the reply holds no valid JSON object
SCRAPE_TITLE_PATTERN: Pattern[str] = re.compile(r'title["\s:]+([^"\n,}]+)', re.IGNORECASE)
SCRAPE_AUTHOR_PATTERN: Pattern[str] = re.compile(r'author["\s:]+([^"\n,}]+)', re.IGNORECASE)

# Creator roles
WORD_PATTERN: Pattern[str] = re.compile(r"\w+")

# Search result suggestions
QUOTED_TITLE_PATTERN: Pattern[str] = re.compile(r'"([^"]{5,50})"')
AUTHOR_MENTION_PATTERN: Pattern[str] = re.compile(r'(?:par|de)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)')

ISBN_SEPARATOR_PATTERN: Pattern[str] = re.compile(r'[-\s]')
