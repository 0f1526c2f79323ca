"""Venture Lab — resumable agent pipelines from idea to published content."""
