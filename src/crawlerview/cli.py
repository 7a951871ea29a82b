"""Command-line interface for the crawler accessibility checker."""

import json
import sys
from typing import Optional
from urllib.parse import urlparse

from crawlerview.config import Config
from crawlerview.explanations import (
    CRAWLER_INFO,
    SCORING_EXPLANATIONS,
    get_score_range,
    issue_types_for,
)
from crawlerview.logging_config import setup_logging
from crawlerview.models import CrawlerOutcome, RobotsCheckResult, SessionResult
from crawlerview.orchestrator import SessionOrchestrator


def is_valid_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def print_robots(robots: RobotsCheckResult):
    """Print the robots.txt check section."""
    print("1. Checking robots.txt...")
    if robots.accessible:
        print("  ✓ robots.txt accessible")
        if robots.issues:
            print("  ⚠ Issues found:")
            for issue in robots.issues:
                print(f"    - {issue}")
        for sitemap in robots.sitemaps:
            print(f"  Sitemap: {sitemap}")
    else:
        print(f"  ✗ robots.txt not accessible: {robots.error}")
    print()
    print("2. Testing with AI crawler user agents...\n")


def print_crawler_result(outcome: CrawlerOutcome):
    """Print one identity's outcome as soon as it is available."""
    print(f"Testing as {outcome.crawler}:")

    if outcome.is_error:
        print(f"  ✗ {outcome.error} - Page not accessible")
        if outcome.explanation:
            print(f"    {outcome.explanation}")
        if len(outcome.attempts) > 1:
            print(f"    ({len(outcome.attempts)} attempts)")
        print()
        return

    if outcome.redirect_chain:
        print("  Redirects followed:")
        for hop in outcome.redirect_chain:
            print(f"    {hop.status}: {hop.from_url} → {hop.to_url}")

    def mark(ok: bool) -> str:
        return "✓" if ok else "✗"

    print(f"  Score: {outcome.score}/100")
    print(f"  Content length: {outcome.content_length} chars {mark(outcome.has_content)}")
    print(f"  Noscript: {mark(outcome.has_noscript)} ({outcome.noscript_length} chars)")
    schemas = f" ({outcome.structured_data_count} schemas)" if outcome.structured_data_count else ""
    print(f"  Structured data: {mark(outcome.has_structured_data)}{schemas}")
    print(f"  Meta tags: {mark(outcome.has_meta_tags)}")
    print(f"  H1 heading: {mark(outcome.has_h1)}")
    print(f"  Loading state: {'✗ Found' if outcome.has_loading_state else '✓ None'}")

    if outcome.issues:
        print("  Issues:")
        for issue in outcome.issues:
            print(f"    - {issue}")
    print()


def print_summary(session: SessionResult):
    """Print average score, deduplicated recommendations and verdict."""
    print(f"{'=' * 70}")
    print("SUMMARY")
    print(f"{'=' * 70}")

    successful = session.successful
    if not successful:
        print("No successful tests - page may not be accessible to AI crawlers")
        return

    print(f"Average Score: {session.average_score:.1f}/100\n")

    recommendations = list(dict.fromkeys(
        issue for result in successful for issue in result.issues
    ))
    if recommendations:
        print("RECOMMENDATIONS:")
        for i, issue in enumerate(recommendations, 1):
            print(f"{i}. {issue}")
        print()

    score_range = get_score_range(session.average_score)
    print(f"{score_range['label']}: {score_range['verdict']}")
    print(f"{'=' * 70}")


def print_explanations(session: SessionResult):
    """Print detailed explanations for every issue type found."""
    issue_types = list(dict.fromkeys(
        issue_type for result in session.successful for issue_type in issue_types_for(result)
    ))

    print()
    print("DETAILED EXPLANATIONS & FIX RECOMMENDATIONS")
    print(f"{'=' * 70}\n")

    print("About the AI Crawlers Tested:\n")
    for outcome in session.crawlers:
        info = CRAWLER_INFO.get(outcome.crawler)
        if not info:
            continue
        print(info["name"])
        print(f"  Purpose: {info['description']}")
        print(f"  Documentation: {info['documentation']}\n")

    for issue_type in issue_types:
        explanation = SCORING_EXPLANATIONS[issue_type]
        print(f"❌ {explanation['title']} ({explanation['weight']} points)")
        print(f"Impact: {explanation['impact']}\n")
        print("Why This Matters:")
        print(f"  {explanation['why']}\n")
        print("How to Fix:")
        for i, fix in enumerate(explanation["fix"], 1):
            print(f"  {i}. {fix}")
        print(f"{'—' * 70}\n")


def run(url: str, config: Config, explain: bool = False, output: str = "text",
        output_file: Optional[str] = None) -> SessionResult:
    """Run a session and print its report."""
    orchestrator = SessionOrchestrator(config=config)

    if output == "json":
        session = orchestrator.run_session(url)
        rendered = json.dumps(session.to_dict(), indent=2, default=str)
        if output_file:
            with open(output_file, "w") as f:
                f.write(rendered)
            print(f"Results written to {output_file}")
        else:
            print(rendered)
        return session

    print(f"{'=' * 70}")
    print("CRAWLERVIEW - AI CRAWLER ACCESSIBILITY TEST")
    print(f"{'=' * 70}")
    print(f"Testing URL: {url}\n")

    session = orchestrator.run_session(
        url, on_result=print_crawler_result, on_robots=print_robots
    )
    print_summary(session)

    if explain:
        print_explanations(session)
    else:
        print()
        print("Tip: Run with --explain for detailed fix recommendations")

    return session


def main(argv=None):
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="crawlerview",
        description="CrawlerView - test how AI crawlers see a web page",
    )
    parser.add_argument("url", help="URL to test")
    parser.add_argument(
        "--explain",
        "-e",
        action="store_true",
        help="Show detailed explanations and fix recommendations",
    )
    parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (only for json format)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        help="Attempts per crawler for network failures (default: 3)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging verbosity (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to stderr",
    )

    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    if not is_valid_url(args.url):
        print(f"Error: Invalid URL: {args.url}", file=sys.stderr)
        print("Usage: crawlerview [options] <url>", file=sys.stderr)
        sys.exit(1)

    config = Config.from_env()
    if args.max_retries is not None:
        if args.max_retries < 1:
            print("Error: --max-retries must be at least 1", file=sys.stderr)
            sys.exit(1)
        config.max_retries = args.max_retries

    run(args.url, config, explain=args.explain, output=args.output, output_file=args.output_file)


if __name__ == "__main__":
    main()
