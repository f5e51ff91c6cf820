#!/usr/bin/env python3
"""
Example: Using the ODF link checker as a Python Library

This script demonstrates how to use the tool programmatically instead of via CLI.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from odf_link_checker import OdfLinkChecker, ProcessingConfig

SAMPLE_HREFS = [
    "https://en.wiktionary.org/wiki/aliquam",
    "http://en.wikipedia.org/wiki/Lorem_ipsum",
    "https://en.wikipedia.org/wiki/Lorem_ipsum",
    "https://en.wikipedia.org/wik/Lorem_ipsum",
    "https://fr.wikipedia.org/wiki/NotAPage",
    "https://en.wikipedia.org/wiki/Dolores_O'Riordan",
    "https://fr.wikipedia.org/wiki/Dolores_O'Riordan",
    "mailto:dymmy@email.dot.tld",
    "http://owasp.org/badurl",
    "https://github.com/takimata",
]


def example_hrefs():
    """Check a list of hrefs for a French document."""
    print("🔍 Example 1: Checking a list of hrefs")
    print("=" * 50)

    checker = OdfLinkChecker()
    report = checker.check_hrefs('fr', SAMPLE_HREFS)

    print(f"\n{len(report.replacements)} replacements suggested:")
    for original, replacement in report.replacements.items():
        print(f"   {original}\n      -> {replacement}")
    return checker


def example_parallel():
    """Same check with four URLs in flight at a time and no per-URL output."""
    print("\n🔍 Example 2: Parallel processing")
    print("=" * 50)

    config = ProcessingConfig(parallelism=4, print_results=False, progress=True)
    checker = OdfLinkChecker(config)
    checker.check_hrefs('fr', SAMPLE_HREFS)

    stats = checker.get_summary_stats()
    print(f"Processed URLs: {stats['processed_urls']}")
    print(f"Counts: {stats['counts']}")
    print(f"Processing time: {stats['processing_time_seconds']:.2f} seconds")
    return checker


def example_document(path: str, output_path: str = None):
    """Check an ODF document and save a corrected copy."""
    print(f"\n🔍 Example 3: Checking {path}")
    print("=" * 50)

    checker = OdfLinkChecker(ProcessingConfig(verbose=True))
    checker.check_file(path, output_path)
    print(f"CSV report: {checker.export_to_csv('.')}")
    return checker


if __name__ == "__main__":
    example_hrefs()
    example_parallel()
    if len(sys.argv) > 1:
        example_document(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
