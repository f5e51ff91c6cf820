"""
ODF Link Checker

A Python library checking the hyperlinks of a document and pointing its
Wikipedia links at articles in the document's language.
"""

from .core import OdfLinkChecker, ProcessingConfig
from .results import Classification, Result, format_url_result
from .registry import UrlRegistry
from .http_client import HttpClient, HttpTask, create_session
from .check_links import StatusChecker
from .wikipedia import WikipediaTranslator, Translation, TranslationOutcome, parse_article_url
from .processor import UrlProcessor
from .generate_report import RunReport, build_report, check_results, get_replacements, print_summary
from .extract_references import Document, DocumentError, load_document, save_document, init_from_hrefs
from .utils import to_https, format_duration
from .app import USER_AGENT

__version__ = "0.1.0"
__author__ = "ChkODF Contributors"

__all__ = [
    "OdfLinkChecker",
    "ProcessingConfig",
    "Classification",
    "Result",
    "format_url_result",
    "UrlRegistry",
    "HttpClient",
    "HttpTask",
    "create_session",
    "StatusChecker",
    "WikipediaTranslator",
    "Translation",
    "TranslationOutcome",
    "parse_article_url",
    "UrlProcessor",
    "RunReport",
    "build_report",
    "check_results",
    "get_replacements",
    "print_summary",
    "Document",
    "DocumentError",
    "load_document",
    "save_document",
    "init_from_hrefs",
    "to_https",
    "format_duration",
    "USER_AGENT",
]
