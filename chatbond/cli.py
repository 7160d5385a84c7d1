"""
CLI interface for ChatBond
"""

import sys
import json
import logging
import argparse

from . import config
from .hf_client import HFSummarizer
from .parser import validate_format
from .pipeline import analyze_chat, result_to_dict

logger = logging.getLogger(__name__)


def analyze_file(
    filepath: str,
    output_file: str = None,
    streaming: bool = None,
    parallel: bool = False,
    summaries: bool = False,
    markdown_file: str = None,
) -> dict:
    """
    Analyze WhatsApp export file.

    Args:
        filepath: Path to WhatsApp .txt export
        output_file: Optional output JSON file
        streaming: Force chunked ingestion
        parallel: Enrich chunks in parallel
        summaries: Attach segment summaries (HF model when USE_ML_SUMMARY)
        markdown_file: Optional output path for the temporal markdown report

    Returns:
        JSON-ready result dict
    """
    valid, msg = config.validate_config()
    if not valid:
        logger.error(f"Configuration error: {msg}")
        sys.exit(1)

    summarizer = None
    if summaries and config.USE_ML_SUMMARY:
        summarizer = HFSummarizer()

    result = analyze_chat(
        filepath,
        streaming=streaming,
        parallel=parallel,
        summarizer=summarizer,
        summaries=summaries,
    )
    report = result_to_dict(result)

    if markdown_file:
        with open(markdown_file, "w", encoding="utf-8") as f:
            f.write(result.temporal.to_markdown())
        logger.info(f"Temporal report saved to {markdown_file}")

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        logger.info(f"Report saved to {output_file}")
    else:
        print(json.dumps(report, indent=2, ensure_ascii=False))

    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ChatBond - WhatsApp Chat Relationship Analyzer"
    )

    parser.add_argument(
        "command",
        choices=["analyze", "validate"],
        help="Command to run"
    )

    parser.add_argument(
        "filepath",
        help="Path to WhatsApp export .txt file"
    )

    parser.add_argument(
        "-o", "--output",
        dest="output_file",
        help="Output JSON file path"
    )

    parser.add_argument(
        "--streaming",
        action="store_true",
        default=None,
        help="Force chunked streaming ingestion"
    )

    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Enrich chunks in parallel (implies streaming)"
    )

    parser.add_argument(
        "--summaries",
        action="store_true",
        help="Attach a text summary to each conversation segment"
    )

    parser.add_argument(
        "--markdown",
        dest="markdown_file",
        help="Write the temporal summary as markdown to this path"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose logging"
    )

    return parser


def main(argv=None):
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.command == "validate":
        valid, msg = validate_format(args.filepath)
        print(f"Valid: {valid} - {msg}")
        sys.exit(0 if valid else 1)

    elif args.command == "analyze":
        try:
            report = analyze_file(
                args.filepath,
                args.output_file,
                streaming=args.streaming,
                parallel=args.parallel,
                summaries=args.summaries,
                markdown_file=args.markdown_file,
            )
        except OSError as e:
            logger.error(f"Could not read {args.filepath}: {e}")
            sys.exit(1)

        if report["error"]:
            logger.warning(report["error"])
        else:
            classification = report["classification"]
            logger.info("Analysis complete")
            logger.info(f"Relationship Type: {classification['classification']} ({classification['score']}/100)")


if __name__ == "__main__":
    main()
