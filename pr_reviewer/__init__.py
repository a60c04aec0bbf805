"""Pull request reviewer that posts OpenAI review comments through the GitHub API."""
