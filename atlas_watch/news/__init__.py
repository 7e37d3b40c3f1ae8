"""
News ingestion and structuring.

Modules:
- aggregator (Aggregator): Concurrent multi-adapter fetch, URL dedup, recency sort
- classifier: Ordered keyword rules → Category
- credibility: Source prior × category adjustment
- ingestion (IngestionPipeline): One collection cycle into the articles table
"""

from atlas_watch.news.aggregator import Aggregator
from atlas_watch.news.classifier import categorize
from atlas_watch.news.credibility import score
from atlas_watch.news.ingestion import IngestionPipeline
