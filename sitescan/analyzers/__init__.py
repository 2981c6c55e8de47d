"""Duplicate detectors and per-page SEO checks."""

from .base import BaseAnalyzer, SiteContext
from .content import ContentAnalyzer
from .duplicates import InternalDuplicateDetector
from .headings import HeadingsAnalyzer
from .images import ImagesAnalyzer
from .links import LinksAnalyzer
from .meta_tags import MetaDescriptionAnalyzer, TitleLengthAnalyzer
from .plagiarism import ExternalPlagiarismDetector
from .schema import SchemaAnalyzer

# Registry of page checks, in the order their issues are reported
PAGE_ANALYZERS = {
    "missing_alt": ImagesAnalyzer,
    "heading_hierarchy": HeadingsAnalyzer,
    "thin_content": ContentAnalyzer,
    "missing_meta_description": MetaDescriptionAnalyzer,
    "long_title": TitleLengthAnalyzer,
    "low_internal_links": LinksAnalyzer,
    "missing_schema": SchemaAnalyzer,
}

__all__ = [
    "BaseAnalyzer",
    "ContentAnalyzer",
    "ExternalPlagiarismDetector",
    "HeadingsAnalyzer",
    "ImagesAnalyzer",
    "InternalDuplicateDetector",
    "LinksAnalyzer",
    "MetaDescriptionAnalyzer",
    "PAGE_ANALYZERS",
    "SchemaAnalyzer",
    "SiteContext",
    "TitleLengthAnalyzer",
]
