"""
pulse_pipeline.sources — fetchers for upstream feeds.

Each fetcher wraps one kind of upstream endpoint:
  JsonApiFetcher       — plain JSON REST endpoint (single GET)
  CkanDatastoreFetcher — Toronto CKAN package → datastore_search envelope
  GbfsFetcher          — Bike Share Toronto GBFS info + status, joined
  NextBusFetcher       — TTC vehicle locations, XML, one request per route
"""

from pulse_pipeline.sources.base import BaseFetcher
from pulse_pipeline.sources.ckan import CkanDatastoreFetcher
from pulse_pipeline.sources.gbfs import GbfsFetcher
from pulse_pipeline.sources.json_api import JsonApiFetcher
from pulse_pipeline.sources.nextbus import NextBusFetcher

__all__ = [
    "BaseFetcher",
    "JsonApiFetcher",
    "CkanDatastoreFetcher",
    "GbfsFetcher",
    "NextBusFetcher",
]
