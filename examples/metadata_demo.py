#!/usr/bin/env python3
"""
examples/metadata_demo.py

Demonstrates the commit metadata fetcher by looking up the last commit of a
few files in a hosted repository, or in a local checkout with --strategy local.
"""

import argparse
import asyncio
import os
import sys

from blogview.fetchers import CommitMetadataFetcher
from blogview.github.client import GitHubClient


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Look up last-modified metadata for repository files")
    parser.add_argument("paths", nargs="+", help="File paths inside the repository")
    parser.add_argument("--owner", type=str, default="octocat", help="Repository owner")
    parser.add_argument("--repo", type=str, default="Hello-World", help="Repository name")
    parser.add_argument("--branch", type=str, default="master", help="Branch to read history from")
    parser.add_argument(
        "--strategy",
        choices=["graphql", "rest", "local"],
        default="rest",
        help="Lookup strategy (graphql needs GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--repo-path",
        type=str,
        default=os.getcwd(),
        help="Local checkout for the local strategy (default: current directory)",
    )
    return parser.parse_args()


def format_commit_info(path, info) -> str:
    """Format a single path's metadata for display."""
    oid = info.commit_oid[:8] if info.commit_oid else "-"
    return f"""
Path: {path}
Commit: {oid}
Author: {info.commit_author}
Date: {info.last_modified}
Message: {info.commit_message}
{'=' * 80}
"""


async def run(args) -> None:
    async with GitHubClient(token=os.getenv("GITHUB_TOKEN")) as client:
        fetcher = CommitMetadataFetcher(args.strategy, client=client, repo_path=args.repo_path)
        commit_map = await fetcher.fetch(args.owner, args.repo, args.branch, args.paths)

    for path, info in commit_map.items():
        print(format_commit_info(path, info))


def main():
    """Run the metadata demo."""
    args = parse_args()
    print(f"Looking up {len(args.paths)} paths in {args.owner}/{args.repo}@{args.branch} via {args.strategy}")

    try:
        asyncio.run(run(args))
    except ValueError as e:
        print(f"Error running metadata lookup: {str(e)}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
