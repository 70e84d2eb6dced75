import csv
import logging
import os
import time

from typing import Callable, List, Tuple

from order_dispatch import ExportSink


logger = logging.getLogger(__name__)

HIGH_VALUE_NOTE = 'High value order'


class CsvExportSink(ExportSink):
	"""Writes each exported order to its own CSV file under `directory`."""

	def __init__(self, directory: str, clock: Callable[[], float] = time.time):
		self.directory = directory
		self.clock = clock

	@classmethod
	def from_config(cls, config: dict, clock: Callable[[], float] = time.time) -> 'CsvExportSink':
		return cls(config['export']['directory'], clock=clock)

	def path_for(self, order_id: int) -> str:
		return os.path.join(self.directory, f'orders_type_A_{order_id}_{int(self.clock())}.csv')

	def write_row(self, order_id: int, amount: float, high_value: bool) -> None:
		csv_file = self.path_for(order_id)
		with open(csv_file, 'w', newline='') as file_handle:
			writer = csv.writer(file_handle)
			writer.writerow(['ID', 'Amount', 'Note'])
			writer.writerow([order_id, amount, HIGH_VALUE_NOTE if high_value else ''])

		logger.info('Exported order %s to %s', order_id, csv_file)


class MemoryExportSink(ExportSink):
	def __init__(self):
		self.rows: List[Tuple[int, float, str]] = []

	def write_row(self, order_id: int, amount: float, high_value: bool) -> None:
		self.rows.append((order_id, amount, HIGH_VALUE_NOTE if high_value else ''))
