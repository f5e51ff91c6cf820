import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import polars as pl

from .registry import UrlRegistry
from .results import Classification, Result
from .utils import format_duration

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Summary of processing the hrefs of one document."""
    input_name: str
    language: str
    input_urls: List[str]
    results: Dict[str, Result]
    counts: Dict[str, int]
    replacements: Dict[str, str]
    consistent: bool
    created: int
    assigned: int
    unassigned_urls: List[str] = field(default_factory=list)
    processing_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def consistency_warning(self) -> Optional[str]:
        if self.consistent:
            return None
        return (f"Not all results were assigned: {self.created} created, "
                f"{self.assigned} assigned, unassigned: {sorted(self.unassigned_urls)}")


def check_results(registry: UrlRegistry, verbose: bool = True) -> bool:
    """
    Check every registered URL received its result.

    A mismatch points at a processing bug. It is reported but does not stop
    the run.

    Returns:
        True when created and assigned counts match
    """
    if registry.created == registry.assigned:
        return True
    unassigned = sorted(registry.unassigned_urls)
    logger.error(f"Results not all assigned: created={registry.created} "
                 f"assigned={registry.assigned} unassigned={unassigned}")
    if verbose:
        print("ERROR: not all results were assigned")
        print(f"  created   : {registry.created}")
        print(f"  assigned  : {registry.assigned}")
        print(f"  unassigned: {unassigned}")
    return False


def count_by_classification(registry: UrlRegistry) -> Dict[str, int]:
    """Number of distinct URLs per classification, in classification order."""
    grouped = registry.urls_by_classification
    return {c.value: len(grouped[c]) for c in Classification if c in grouped}


def get_replacements(registry: UrlRegistry) -> Dict[str, str]:
    """Map every URL classified replace or redirect to its new location."""
    return {
        url: result.location
        for url, result in registry.results.items()
        if result.is_replaceable
    }


def build_report(registry: UrlRegistry, input_name: str, language: str,
                 input_urls: List[str], processing_time: float = 0.0,
                 verbose: bool = True) -> RunReport:
    """Fold the final registry into a RunReport."""
    consistent = check_results(registry, verbose=verbose)
    return RunReport(
        input_name=input_name,
        language=language,
        input_urls=list(input_urls),
        results=registry.results,
        counts=count_by_classification(registry),
        replacements=get_replacements(registry),
        consistent=consistent,
        created=registry.created,
        assigned=registry.assigned,
        unassigned_urls=sorted(registry.unassigned_urls),
        processing_time=processing_time,
    )


def print_summary(report: RunReport) -> None:
    """Print the per-classification summary of a run."""
    print(f"\nSummary for {report.input_name}")
    print(f"Language {report.language}")
    print(f"Input URLs    : {len(report.input_urls)}")
    print(f"Processed URLs: {len(report.results)}")
    for classification, count in report.counts.items():
        print(f"{classification}: {count}")
    if report.processing_time:
        print(f"Processing time: {format_duration(report.processing_time)}")
    if not report.consistent:
        print(f"WARNING: {report.consistency_warning}")


def create_results_csv_report(report: RunReport, output_path: str, verbose: bool = False) -> str:
    """
    Write one CSV row per distinct URL.

    Args:
        report: Report of the run
        output_path: CSV file path, or directory receiving a timestamped file
        verbose: Enable verbose output

    Returns:
        Path to the generated CSV file
    """
    if os.path.isdir(output_path):
        timestamp = report.timestamp.strftime("%Y%m%d_%H%M%S")
        output_path = os.path.join(output_path, f"link_results_{timestamp}.csv")

    occurrences = Counter(report.input_urls)
    records = []
    for url, result in report.results.items():
        records.append({
            'url': url,
            'classification': result.classification.value,
            'status': result.status,
            'reason_phrase': result.reason_phrase,
            'location': result.location,
            'occurrences': occurrences.get(url, 0),
            'messages': "; ".join(result.messages),
            'warnings': "; ".join(result.warnings),
        })

    df = pl.DataFrame(records, schema={
        'url': pl.Utf8,
        'classification': pl.Utf8,
        'status': pl.Int64,
        'reason_phrase': pl.Utf8,
        'location': pl.Utf8,
        'occurrences': pl.Int64,
        'messages': pl.Utf8,
        'warnings': pl.Utf8,
    })
    df.write_csv(output_path)

    if verbose:
        print(f"📄 Wrote {len(records)} results to {output_path}")
    return output_path
