"""
URL result model.

A Result is the final outcome of resolving one URL. Its classification
decides which fields are allowed: a location is required for replace and
redirect results and forbidden for the others.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import requests


class Classification(str, Enum):
    SUCCESS = 'success'
    REDIRECT = 'redirect'
    REPLACE = 'replace'
    FAILURE = 'failure'
    IGNORED = 'ignored'


WITH_LOCATION = (Classification.REDIRECT, Classification.REPLACE)

# ANSI escapes used for the classification tag
BOLD = "\u001b[1m"
BLACK = "\u001b[30m"
YELLOW = "\u001b[33m"
ON_RED = "\u001b[41m"
ON_YELLOW = "\u001b[43m"
ON_BLUE = "\u001b[44m"
RESET = "\u001b[0m"


@dataclass
class Result:
    """Result of resolving a single URL."""
    url: str
    classification: Classification
    status: Optional[int] = None
    reason_phrase: Optional[str] = None
    location: Optional[str] = None
    messages: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    previous: List['Result'] = field(default_factory=list)

    def __post_init__(self):
        self.classification = Classification(self.classification)
        if self.classification in WITH_LOCATION and not self.location:
            raise ValueError(f"{self.classification.value} result for {self.url} requires a location")
        if self.classification not in WITH_LOCATION and self.location is not None:
            raise ValueError(f"{self.classification.value} result for {self.url} cannot have a location")

    def add_message(self, message: str) -> 'Result':
        self.messages.append(message)
        return self

    def add_warning(self, warning: str) -> 'Result':
        self.warnings.append(warning)
        return self

    def add_previous(self, previous: 'Result') -> 'Result':
        self.previous.append(previous)
        return self

    @property
    def is_replaceable(self) -> bool:
        return self.classification in WITH_LOCATION

    def for_url(self, url: str) -> 'Result':
        """Return this result re-keyed to another URL, sharing its history."""
        if url == self.url:
            return self
        return Result(
            url=url,
            classification=self.classification,
            status=self.status,
            reason_phrase=self.reason_phrase,
            location=self.location,
            messages=list(self.messages),
            warnings=list(self.warnings),
            previous=list(self.previous),
        )


def success(url: str, message: str = None) -> Result:
    return Result(url, Classification.SUCCESS, messages=[message] if message else [])


def failure(url: str, message: str) -> Result:
    return Result(url, Classification.FAILURE, messages=[message])


def ignored(url: str, message: str) -> Result:
    return Result(url, Classification.IGNORED, messages=[message])


def replace(url: str, location: str, message: str = None) -> Result:
    return Result(url, Classification.REPLACE, location=location,
                  messages=[message] if message else [])


def cancelled(url: str) -> Result:
    return failure(url, "Request cancelled")


def from_response(url: str, response: requests.Response) -> Result:
    """
    Build a result from an HTTP response.

    Redirects followed by requests are kept in ``response.history``; the
    trace is the list of locations visited, the last one being the final URL.
    """
    status = response.status_code
    reason = response.reason or ''
    trace = [r.headers.get('Location') or r.url for r in response.history]
    if trace:
        trace[-1] = response.url
    redirected = bool(trace)

    if status == 200:
        classification = Classification.SUCCESS
    elif redirected and 200 <= status < 400:
        classification = Classification.REDIRECT
    else:
        classification = Classification.FAILURE

    messages = [f"{status} {reason}".strip()]
    if redirected:
        messages.append(f"Redirects: {trace}")

    return Result(
        url=url,
        classification=classification,
        status=status,
        reason_phrase=reason or None,
        location=trace[-1] if redirected and classification == Classification.REDIRECT else None,
        messages=messages,
    )


def str_classification(classification: Classification) -> str:
    """Return the upper-case classification tag, coloured for terminals."""
    tag = classification.value.upper()
    if classification == Classification.FAILURE:
        return f"{BOLD}{BLACK}{ON_RED}{tag}{RESET}"
    if classification == Classification.REPLACE:
        return f"{BOLD}{BLACK}{ON_YELLOW}{tag}{RESET}"
    if classification == Classification.REDIRECT:
        return f"{BOLD}{YELLOW}{ON_BLUE}{tag}{RESET}"
    return tag


def format_url_result(result: Result, color: bool = True) -> str:
    """Format a result the way it is printed when the URL resolves."""
    lines = [f"URL {result.url}"]
    if result.is_replaceable:
        lines.append(f" -> {result.location}")
    tag = str_classification(result.classification) if color else result.classification.value.upper()
    lines.append(f"  > {tag}")
    for message in result.messages:
        lines.append(f"   - {message}")
    for warning in result.warnings:
        lines.append(f"   ! {warning}")
    return "\n".join(lines)
