"""
Wiring for the entry points: builds a StrategyPipeline from Settings.
"""
from __future__ import annotations

import logging
from typing import Optional

from .config import Settings, settings as default_settings
from .engine import ProfileResolver, StrategyPipeline, load_weights
from .services.record_store import JsonRecordStore, RecordStore, RestRecordStore
from .services.registry import ConstituencyRegistry, RegionalProfiles

logger = logging.getLogger(__name__)


def build_record_store(cfg: Settings) -> RecordStore:
    if cfg.record_store_url:
        logger.info("Using hosted record store at %s", cfg.record_store_url)
        return RestRecordStore(
            base_url=cfg.record_store_url,
            api_key=cfg.record_store_key,
            table=cfg.record_store_table,
            timeout=cfg.collaborator_timeout,
            max_attempts=cfg.collaborator_max_attempts,
        )
    return JsonRecordStore.from_data_dir(cfg.data_path)


def build_pipeline(cfg: Optional[Settings] = None) -> StrategyPipeline:
    cfg = cfg or default_settings
    weights = load_weights(cfg.weights_file)
    resolver = ProfileResolver(
        registry=ConstituencyRegistry.from_data_dir(cfg.data_path),
        store=build_record_store(cfg),
        regional=RegionalProfiles.from_data_dir(cfg.data_path),
        weights=weights,
        focus_party=cfg.focus_party,
        ruling_party=cfg.ruling_party,
    )
    return StrategyPipeline(resolver, weights=weights, max_workers=cfg.max_workers)
