import logging
import os

from typing import Optional

import yaml

from csv_export import CsvExportSink
from order_dispatch import DecisionClient, OrderDispatchEngine, OrderStore


DEFAULTS = {
	'export': {'directory': '.'},
	'logging': {'level': 'INFO'},
}

EXPORT_DIR_ENV = 'ORDER_EXPORT_DIR'


def load_dispatch_config(path: Optional[str] = None) -> dict:
	"""Defaults, then the YAML file at `path` if it exists, then the environment."""
	cfg = {}
	if path:
		try:
			with open(path, 'r', encoding='utf-8') as f:
				cfg = yaml.safe_load(f) or {}
		except FileNotFoundError:
			cfg = {}

	# shallow merge defaults
	merged = {k: dict(v) for k, v in DEFAULTS.items()}
	for k, v in cfg.items():
		if isinstance(v, dict) and isinstance(merged.get(k), dict):
			merged[k].update(v)
		else:
			merged[k] = v

	export_dir = os.environ.get(EXPORT_DIR_ENV)
	if export_dir:
		merged['export']['directory'] = export_dir
	return merged


def configure_logging(config: dict) -> None:
	level = str(config.get('logging', {}).get('level', 'INFO')).upper()
	logging.basicConfig(
		level=getattr(logging, level, logging.INFO),
		format='%(asctime)s %(levelname)s %(name)s: %(message)s',
	)


def build_engine(store: OrderStore, decision_client: DecisionClient,
				 config: Optional[dict] = None) -> OrderDispatchEngine:
	"""Wire an engine whose CSV exports go to the configured directory."""
	if config is None:
		config = load_dispatch_config()
	configure_logging(config)
	return OrderDispatchEngine(store, decision_client, CsvExportSink.from_config(config))
