"""
Core API for the ODF link checker

This module provides a high-level interface for checking the hyperlinks of
a document and finding their replacements.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests
from tqdm import tqdm

from .check_links import StatusChecker
from .extract_references import Document, init_from_hrefs, load_document, save_document
from .generate_report import RunReport, build_report, create_results_csv_report, print_summary
from .http_client import HttpClient, create_session
from .processor import UrlProcessor
from .registry import UrlRegistry
from .results import Result, format_url_result
from .wikipedia import DEFAULT_SITE, WikipediaTranslator

logger = logging.getLogger(__name__)


@dataclass
class ProcessingConfig:
    """Configuration for checking the links of a document."""
    language: Optional[str] = None
    parallelism: int = 1
    timeout: float = 10.0
    site: str = DEFAULT_SITE
    pool_connections: int = 20
    pool_maxsize: int = 3
    idle_timeout: float = 10.0
    request_workers: int = 8
    insecure: bool = False
    progress: bool = False
    print_results: bool = True
    color: bool = True
    verbose: bool = False


def set_logging_level(verbose: bool = False):
    """Set the logging level based on verbose flag."""
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    level = logging.INFO if verbose else logging.WARNING
    logging.getLogger().setLevel(level)
    logging.getLogger('odf_link_checker').setLevel(level)


class OdfLinkChecker:
    """
    High-level API for checking the hyperlinks of a document.

    The checker owns the resources of one run at a time: the HTTP session
    is opened when a run starts and closed when it ends, whatever the
    outcome.
    """

    def __init__(self, config: Optional[ProcessingConfig] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the link checker.

        Args:
            config: Configuration object. If None, uses default settings.
            session: Session to use instead of creating one per run (tests)
        """
        self.config = config or ProcessingConfig()
        self._session = session
        self.registry: Optional[UrlRegistry] = None
        self.processor: Optional[UrlProcessor] = None
        self.report: Optional[RunReport] = None

    def _print_result(self, result: Result):
        if self.config.print_results:
            tqdm.write(format_url_result(result, color=self.config.color))

    def _open_client(self) -> HttpClient:
        session = self._session
        if session is None:
            session = create_session(
                pool_connections=self.config.pool_connections,
                pool_maxsize=self.config.pool_maxsize,
                idle_timeout=self.config.idle_timeout,
                insecure=self.config.insecure,
            )
        return HttpClient(session, timeout=self.config.timeout,
                          max_workers=self.config.request_workers)

    def check_urls(self, language: str, hrefs: List[str], input_name: Optional[str] = None) -> RunReport:
        """
        Resolve hrefs for a document written in language.

        Args:
            language: Two-letter language code of the document
            hrefs: Hyperlink targets in document order, duplicates included
            input_name: Name shown in the summary

        Returns:
            RunReport with per-URL results, counts and replacements
        """
        start_time = time.time()
        hrefs = list(hrefs)
        input_name = input_name or f"{len(hrefs)} hrefs"
        if self.config.verbose:
            print(f"Processing {input_name}")
            print(f"Language {language}")

        self.registry = UrlRegistry(on_assign=self._print_result)
        with self._open_client() as client:
            checker = StatusChecker(client)
            translator = WikipediaTranslator(client, checker, language, site=self.config.site)
            self.processor = UrlProcessor(self.registry, checker, translator,
                                          parallelism=self.config.parallelism)
            self.processor.process_urls(hrefs, progress=self.config.progress)

        self.report = build_report(
            self.registry,
            input_name=input_name,
            language=language,
            input_urls=self.processor.input_urls,
            processing_time=time.time() - start_time,
        )
        if self.config.print_results:
            print_summary(self.report)
        return self.report

    def check_document(self, document: Document) -> RunReport:
        return self.check_urls(document.language, document.hrefs, input_name=document.name)

    def check_file(self, path: str, output_path: Optional[str] = None) -> RunReport:
        """
        Check the hyperlinks of a document file.

        Args:
            path: ODF or HTML document
            output_path: Where to save a copy with replaced hyperlinks

        Returns:
            RunReport of the run
        """
        document = load_document(path, language=self.config.language)
        report = self.check_document(document)
        if output_path and report.replacements:
            print(f"Saving to {output_path}")
            count = save_document(document, report.replacements, output_path)
            print(f"{count} changes")
        return report

    def check_hrefs(self, language: str, hrefs: List[str]) -> RunReport:
        return self.check_document(init_from_hrefs(language, hrefs))

    def get_replacements(self) -> Dict[str, str]:
        """Replacement locations of the last run."""
        return dict(self.report.replacements) if self.report else {}

    def get_summary_stats(self) -> Dict[str, object]:
        """Get summary statistics as a dictionary."""
        if not self.report:
            return {}
        return {
            'input_name': self.report.input_name,
            'language': self.report.language,
            'input_urls': len(self.report.input_urls),
            'processed_urls': len(self.report.results),
            'counts': dict(self.report.counts),
            'replacements': len(self.report.replacements),
            'consistent': self.report.consistent,
            'processing_time_seconds': self.report.processing_time,
            'timestamp': self.report.timestamp.isoformat(),
        }

    def export_to_csv(self, output_path: str = ".") -> str:
        """
        Export results of the last run to CSV format.

        Args:
            output_path: CSV file, or directory receiving a timestamped file

        Returns:
            Path to the generated CSV file
        """
        if not self.report:
            raise RuntimeError("No results to export, run a check first")
        return create_results_csv_report(self.report, output_path, verbose=self.config.verbose)
