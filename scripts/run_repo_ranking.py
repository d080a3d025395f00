#!/usr/bin/env python3
# scripts/run_repo_ranking.py
"""
Standalone script to rank an organization's repositories.
Equivalent to the `reporank` console command.

Usage:
    python scripts/run_repo_ranking.py --org aws-samples

Required environment variables:
    OPENROUTER_API_KEY: OpenRouter API key

Optional environment variables:
    GITHUB_TOKEN: GitHub personal access token for higher rate limits
"""

import sys

from reporank.cli import main

if __name__ == "__main__":
    sys.exit(main())
