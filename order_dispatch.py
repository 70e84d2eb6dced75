import logging

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, NamedTuple, Optional


logger = logging.getLogger(__name__)


class OrderType(str, Enum):
	A = 'A'
	B = 'B'
	C = 'C'

	@classmethod
	def parse(cls, token: str) -> Optional['OrderType']:
		"""Return the matching type, or None for a token outside A/B/C."""
		try:
			return cls(token)
		except ValueError:
			return None


class OrderStatus(str, Enum):
	NEW = 'new'
	EXPORTED = 'exported'
	EXPORT_FAILED = 'export_failed'
	PENDING = 'pending'
	PROCESSED = 'processed'
	ERROR = 'error'
	API_ERROR = 'api_error'
	API_FAILURE = 'api_failure'
	COMPLETED = 'completed'
	IN_PROGRESS = 'in_progress'
	UNKNOWN_TYPE = 'unknown_type'
	DB_ERROR = 'db_error'


class Priority(str, Enum):
	LOW = 'low'
	MEDIUM = 'medium'
	HIGH = 'high'


class Order:
	def __init__(self, id: int, type: str, amount: float, flag: bool,
				 status: str = OrderStatus.NEW.value, priority: str = Priority.MEDIUM.value):
		self.id = id
		self.type = type
		self.amount = amount
		self.flag = flag
		self.status = status
		self.priority = priority

	def __repr__(self) -> str:
		return f'Order(id={self.id!r}, type={self.type!r}, status={self.status!r})'


class DecisionResult:
	def __init__(self, status: str, payload: Any):
		self.status = status
		self.payload = payload


class Decision(NamedTuple):
	status: OrderStatus
	priority: Priority


class DecisionServiceError(Exception):
	pass


class StoreError(Exception):
	pass


class OrderStore(ABC):
	@abstractmethod
	def list_orders(self, user_id: int) -> List[Order]:
		pass

	@abstractmethod
	def update_status(self, order_id: int, status: str, priority: str) -> bool:
		pass


class DecisionClient(ABC):
	@abstractmethod
	def call(self, order_id: int) -> DecisionResult:
		pass


class ExportSink(ABC):
	@abstractmethod
	def write_row(self, order_id: int, amount: float, high_value: bool) -> None:
		"""Append one row for the order; raises OSError when unwritable."""
		pass


HIGH_VALUE_THRESHOLD = 150.0
HIGH_PRIORITY_THRESHOLD = 200.0
DECISION_PAYLOAD_MIN = 50
TYPE_B_AMOUNT_LIMIT = 100.0


class OrderDispatchEngine:
	"""Runs one user's orders through the per-type rules.

	Each order gets exactly one terminal (status, priority) pair, which is
	persisted through the store and then written back onto the order.
	Failures of the export sink, the decision service and the store update
	are mapped to statuses; anything else ends the batch with False.
	"""

	def __init__(self, store: OrderStore, decision_client: DecisionClient, export_sink: ExportSink):
		self.store = store
		self.decision_client = decision_client
		self.export_sink = export_sink
		self._rules = {
			OrderType.A: self._decide_type_a,
			OrderType.B: self._decide_type_b,
			OrderType.C: self._decide_type_c,
		}

	def process_batch(self, user_id: int) -> bool:
		try:
			orders = self.store.list_orders(user_id)

			if not orders:
				logger.info('No orders for user %s', user_id)
				return False

			for order in orders:
				decision = self.decide(order)
				order.status, order.priority = self._persist(order, decision)

			return True
		except Exception:
			logger.exception('Batch for user %s aborted', user_id)
			return False

	def decide(self, order: Order) -> Decision:
		order_type = OrderType.parse(order.type)
		if order_type is None:
			decision = Decision(OrderStatus.UNKNOWN_TYPE, Priority(order.priority))
		else:
			decision = self._rules[order_type](order)

		logger.debug('Order %s (%s) -> %s/%s', order.id, order.type, decision.status.value, decision.priority.value)
		return decision

	def _persist(self, order: Order, decision: Decision):
		try:
			acknowledged = self.store.update_status(order.id, decision.status.value, decision.priority.value)
		except StoreError as exc:
			logger.warning('Store update failed for order %s: %s', order.id, exc)
			return OrderStatus.DB_ERROR.value, order.priority

		if not acknowledged:
			logger.warning('Store did not acknowledge update for order %s', order.id)
			return OrderStatus.DB_ERROR.value, order.priority

		return decision.status.value, decision.priority.value

	def _decide_type_a(self, order: Order) -> Decision:
		if order.amount > HIGH_PRIORITY_THRESHOLD:
			priority = Priority.HIGH
		else:
			priority = Priority.LOW

		try:
			self.export_sink.write_row(order.id, order.amount, order.amount > HIGH_VALUE_THRESHOLD)
		except OSError as exc:
			logger.warning('CSV export failed for order %s: %s', order.id, exc)
			return Decision(OrderStatus.EXPORT_FAILED, priority)

		return Decision(OrderStatus.EXPORTED, priority)

	def _decide_type_b(self, order: Order) -> Decision:
		try:
			result = self.decision_client.call(order.id)
		except DecisionServiceError as exc:
			logger.warning('Decision service failed for order %s: %s', order.id, exc)
			return Decision(OrderStatus.API_FAILURE, Priority(order.priority))

		if order.flag:
			return Decision(OrderStatus.PENDING, Priority(order.priority))

		if result.status != 'success':
			return Decision(OrderStatus.API_ERROR, Priority(order.priority))

		# non-numeric payloads raise here and abort the batch
		payload = float(result.payload)
		if payload < DECISION_PAYLOAD_MIN:
			return Decision(OrderStatus.PENDING, Priority(order.priority))
		if order.amount < TYPE_B_AMOUNT_LIMIT:
			return Decision(OrderStatus.PROCESSED, Priority(order.priority))
		return Decision(OrderStatus.ERROR, Priority.LOW)

	def _decide_type_c(self, order: Order) -> Decision:
		if order.flag:
			return Decision(OrderStatus.COMPLETED, Priority(order.priority))
		return Decision(OrderStatus.IN_PROGRESS, Priority(order.priority))
