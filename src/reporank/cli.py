# src/reporank/cli.py
"""
Command line runner for organization repository ranking.
Ranks an organization's repositories against the configured criteria and
writes the ranked CSV report.
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from reporank.core.errors import ConfigurationError, RepositorySourceError
from reporank.core.settings import DEFAULT_CONFIG_PATH, RuntimeSettings, load_search_config
from reporank.shared.github_client import GitHubRepositorySource
from reporank.shared.tool_model_engine import create_engine
from reporank.tasks.ranking.repo_ranking_pipeline import RankingSummary, RepoRankingPipeline

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if number < 1:
        raise argparse.ArgumentTypeError(f"{value} must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rank an organization's repositories by weighted metadata and README criteria",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rank aws-samples with the default configuration
  reporank --org aws-samples

  # Use a different model and output file
  reporank --org aws-samples --model "anthropic/claude-3-haiku" --output rankings.csv

  # Validate configuration and credentials only
  reporank --org aws-samples --dry-run
        """
    )

    parser.add_argument(
        "--org",
        type=str,
        required=True,
        help="GitHub organization to rank"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})"
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output CSV path (default: output file from configuration)"
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model identifier (default: model from configuration)"
    )

    parser.add_argument(
        "--max-concurrency",
        type=positive_int,
        default=None,
        help="Maximum repositories scored at once (default: MAX_CONCURRENCY or 4)"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate setup without running the ranking"
    )

    return parser


def print_summary(summary: RankingSummary):
    """Print the end-of-run summary."""
    print("\n" + "="*60)
    print("REPOSITORY RANKING RESULTS")
    print("="*60)
    print(f"***Found {summary.total_found} total repos in {summary.organization}.")
    print(f"***Rejected {summary.rejected_stale_or_ignored} repos not updated after "
          f"{summary.min_updated_date} or on the ignore list.")
    print(f"***Rejected {summary.rejected_no_readme} repos that do not have a README.")
    print(f"***Rejected {summary.rejected_language} repos that do not use an SDK language.")
    print(f"***Failed model requests: {summary.failed_model_requests}.")
    print(f"***Rejected {summary.rejected_deprecated} repos marked as deprecated.")
    if summary.data_warnings:
        print(f"***Data warnings: {len(summary.data_warnings)} (see log).")
    print()
    print(f"Repo list written to {summary.output_file}.")
    print(f"\tTotal repositories ranked: {summary.ranked}")
    for language, count in summary.language_counts.items():
        print(f"\t\t{language}: {count} repos found.")
    print("="*60)


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution function."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose)

    # Load .env file if it exists
    load_dotenv()
    settings = RuntimeSettings()

    logger.info("Validating environment...")
    validation = settings.validate_environment()
    for warning in validation['warnings']:
        logger.warning(warning)
    if not validation['valid']:
        print("Error: Missing required environment variables:")
        for var in validation['missing']:
            print(f"  - {var}")
        print("\nPlease set these variables in environment or .env file and try again.")
        return 1

    logger.info(f"Loading configuration from {args.config}...")
    try:
        config = load_search_config(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    model_id = args.model or config.model_id
    output_file = args.output or config.output_file
    max_concurrency = settings.max_concurrency
    if args.max_concurrency is not None:
        max_concurrency = args.max_concurrency

    print("="*60)
    print("REPOSITORY RANKING CONFIGURATION")
    print("="*60)
    print(f"Organization: {args.org}")
    print(f"Model: {model_id}")
    print(f"Years included: {config.years_included}")
    print(f"SDK languages: {', '.join(config.sdk_languages) or 'all'}")
    print(f"Repo criteria: {', '.join(c.name for c in config.repo_criteria) or 'none'}")
    print(f"Model criteria: {', '.join(c.name for c in config.genai_criteria) or 'none'}")
    print(f"Output file: {output_file}")
    print(f"Max concurrency: {max_concurrency}")
    print("="*60)

    source = GitHubRepositorySource(token=settings.github_token, api_url=settings.github_api_url)
    model_client = create_engine(settings, model_id)
    try:
        pipeline = RepoRankingPipeline(config, source, model_client, max_concurrency=max_concurrency)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    if args.dry_run:
        print("Dry run completed successfully. All configurations are valid.")
        return 0

    try:
        summary, _ = pipeline.run(args.org, output_file)
        print_summary(summary)
        logger.info(f"Total model tokens used: {model_client.get_total_tokens()}")
        return 0

    except KeyboardInterrupt:
        print("\nRanking interrupted by user.")
        return 130

    except RepositorySourceError as e:
        logger.error(f"Unable to list repositories: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
