"""
GitHub search layer.

- query: search-string construction for repository and pull request queries
- repositories: multi-organization repository search with dedup
- pull_requests: single-repository pull request search
"""
