#!/usr/bin/env python3
"""
Form Field Detection - Example Usage
====================================

This script shows how to run the form analysis pipeline on a local HTML
file or a URL and print the detected fields.

Usage:
    python examples/analyze_form_example.py path/to/form.html
    python examples/analyze_form_example.py --url https://example.com/signup

Requirements:
    - Optional: INFERENCE_API_KEY (or OPENAI_API_KEY) environment variable;
      without it only heuristic detection runs
"""

import sys
import json
import asyncio
import argparse
import logging
from pathlib import Path

from formprobe.services.field_detection import (
    CATALOG,
    FormAnalysisPipeline,
    parse_fields
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def analyze(html_path: str = None, url: str = None, output_path: str = None, heuristic_only: bool = False):
    """
    Run detection and print a summary.

    Args:
        html_path: Path to a local HTML file
        url: URL to fetch instead of a local file
        output_path: Optional path to save JSON output
        heuristic_only: Skip the external services entirely
    """
    html_content = None
    if html_path:
        html_path = Path(html_path)
        if not html_path.exists():
            logger.error(f"File not found: {html_path}")
            return None
        html_content = html_path.read_text(encoding='utf-8', errors='replace')
        logger.info(f"Processing: {html_path.name} ({len(html_content):,} characters)")

    if heuristic_only:
        if html_content is None:
            logger.error("--heuristic-only needs a local HTML file")
            return None
        fields = parse_fields(html_content)
        output_data = {'success': bool(fields), 'fields': [f.to_dict() for f in fields], 'warnings': []}
    else:
        pipeline = FormAnalysisPipeline.from_config()
        result = asyncio.run(pipeline.analyze_html(html_content=html_content, url=url))
        output_data = result.to_dict()

    # Print summary
    print("\n" + "=" * 60)
    print("FORM ANALYSIS RESULTS")
    print("=" * 60)

    if not output_data['success']:
        print(f"\nAnalysis failed: {output_data.get('error', 'no fields detected')}")
    else:
        print(f"\nTotal Fields Detected: {len(output_data['fields'])}")
        print("\n" + "-" * 40)
        print("DETECTED FIELDS")
        print("-" * 40)
        for item in output_data['fields']:
            label = f"  (label: \"{item['label'][:40]}\")" if item.get('label') else ""
            print(f"  {item['fieldName']:30} {item['dataType']:20}{label}")

    for warning in output_data['warnings']:
        print(f"\nWarning: {warning}")

    # Save output if path provided
    if output_path:
        with open(output_path, 'w') as f:
            json.dump(output_data, f, indent=2)
        logger.info(f"Output saved to: {output_path}")

    return output_data


def show_data_types():
    """Print the data type vocabulary by category."""
    print("\n" + "=" * 60)
    print("DATA TYPES")
    print("=" * 60)
    print(f"\nTotal Types: {len(CATALOG.values)}")

    for category, values in CATALOG.groups.items():
        print(f"\n{category}:")
        for value in values:
            print(f"  • {value}")


def main():
    parser = argparse.ArgumentParser(
        description='HTML Form Field Detection',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Analyze a local HTML file
    python analyze_form_example.py signup.html

    # Analyze a page by URL and save the fields as JSON
    python analyze_form_example.py --url https://example.com/signup -o fields.json

    # Heuristics only, no external calls
    python analyze_form_example.py signup.html --heuristic-only

    # Show the data type vocabulary
    python analyze_form_example.py --data-types
        """
    )

    parser.add_argument(
        'html_path',
        nargs='?',
        help='Path to HTML file to analyze'
    )

    parser.add_argument(
        '--url',
        help='URL of a page to fetch and analyze'
    )

    parser.add_argument(
        '-o', '--output',
        help='Path to save JSON output'
    )

    parser.add_argument(
        '--heuristic-only',
        action='store_true',
        help='Use only the heuristic parser'
    )

    parser.add_argument(
        '--data-types',
        action='store_true',
        help='Show the data type vocabulary and exit'
    )

    args = parser.parse_args()

    if args.data_types:
        show_data_types()
        return

    if not args.html_path and not args.url:
        parser.print_help()
        print("\nError: Please provide an HTML path, --url, or --data-types")
        sys.exit(1)

    analyze(args.html_path, args.url, args.output, args.heuristic_only)


if __name__ == '__main__':
    main()
