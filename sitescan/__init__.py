"""Duplicate content and plagiarism scanner for WordPress sites."""
