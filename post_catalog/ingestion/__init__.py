"""
Post Catalog Ingestion
======================

Pipeline that turns channel posts into stored records.

Pipeline Stages:
1. Listen - Listener emits a RawEvent per incoming post
2. Parse - ParserStage extracts and validates a Record
3. Persist - PersisterStage writes the Record to the store

Stages are connected by bounded relays that drop items when full.
"""

from post_catalog.ingestion.listener import Listener, TelegramListener, extract_url
from post_catalog.ingestion.parser import build_field_map, parse, split_tags
from post_catalog.ingestion.pipeline import IngestPipeline, ParserStage, PersisterStage
from post_catalog.ingestion.relay import Relay

__all__ = [
    # Listener
    "Listener",
    "TelegramListener",
    "extract_url",
    # Parser
    "build_field_map",
    "parse",
    "split_tags",
    # Pipeline
    "IngestPipeline",
    "ParserStage",
    "PersisterStage",
    "Relay",
]
