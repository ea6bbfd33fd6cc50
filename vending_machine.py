import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Set, TypeVar, Union
from dataclasses import dataclass
from datetime import datetime
from threading import RLock


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SLOT_CAPACITY = 10


# ==================== Enums ====================

class ProductCategory(Enum):
    """Product categories"""
    BEVERAGE = "BEVERAGE"
    SNACK = "SNACK"
    CANDY = "CANDY"
    CHIPS = "CHIPS"
    OTHER = "OTHER"


class MachineState(Enum):
    """States of the vending machine"""
    READY = "READY"
    COIN_INSERTED = "COIN_INSERTED"
    PRODUCT_SELECTED = "PRODUCT_SELECTED"
    DISPENSING = "DISPENSING"
    MAINTENANCE = "MAINTENANCE"
    OUT_OF_ORDER = "OUT_OF_ORDER"


# ==================== Errors ====================

class VendingMachineError(Exception):
    """
    Base class for recoverable errors reported to the caller.

    Each subclass carries a stable ``code`` so a remote front end can send
    the error as a tagged code plus a human readable detail.
    """

    code = "VENDING_MACHINE_ERROR"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "detail": self.detail}


class InvalidCommandForStateError(VendingMachineError):
    """Command is not permitted in the current state"""

    code = "INVALID_COMMAND_FOR_STATE"

    def __init__(self, command: str, state: MachineState, reason: Optional[str] = None):
        detail = f"Cannot {command} while machine is {state.value}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)
        self.command = command
        self.state = state


class UnknownProductError(VendingMachineError):
    code = "UNKNOWN_PRODUCT"

    def __init__(self, product_id: str):
        super().__init__(f"Unknown product: {product_id}")
        self.product_id = product_id


class OutOfStockError(VendingMachineError):
    code = "OUT_OF_STOCK"

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} is out of stock")
        self.product_id = product_id


class InsufficientFundsError(VendingMachineError):
    """Balance does not cover the product price"""

    code = "INSUFFICIENT_FUNDS"

    def __init__(self, product_id: str, price: int, balance: int):
        self.product_id = product_id
        self.price = price
        self.balance = balance
        self.shortfall = price - balance
        super().__init__(
            f"Insufficient funds for {product_id}: price {price}, "
            f"balance {balance}, insert {self.shortfall} more"
        )


class BusyError(VendingMachineError):
    """Raised for any command issued while a dispense is in progress"""

    code = "BUSY"

    def __init__(self, command: str, reason: str = "dispensing in progress"):
        super().__init__(f"Cannot {command}: {reason}")
        self.command = command


class InvalidCoinError(VendingMachineError):
    code = "INVALID_COIN"

    def __init__(self, amount):
        super().__init__(f"Coin rejected: {amount!r}")
        self.amount = amount


class InvalidQuantityError(VendingMachineError, ValueError):
    """Restock quantity is not a non-negative integer"""

    code = "INVALID_QUANTITY"

    def __init__(self, quantity):
        super().__init__(f"Restock quantity must be a non-negative integer: {quantity!r}")
        self.quantity = quantity


def _is_whole_number(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class LogStorageError(Exception):
    """
    Transaction log storage is exhausted.

    This is the one fatal condition: the in-flight command is rolled back
    and the error propagates to the caller.
    """


# ==================== Core Models ====================

class Product:
    """Represents a product stocked in the machine"""

    def __init__(self, product_id: str, name: str, price: int, stock: int = 0,
                 capacity: int = DEFAULT_SLOT_CAPACITY,
                 category: ProductCategory = ProductCategory.OTHER):
        if not (_is_whole_number(price) and _is_whole_number(stock) and _is_whole_number(capacity)):
            raise ValueError("Price, stock and capacity must be integers")
        if price < 0:
            raise ValueError("Price must be non-negative")
        if capacity <= 0:
            raise ValueError("Capacity must be positive")
        if stock < 0 or stock > capacity:
            raise ValueError(f"Stock must be between 0 and {capacity}")

        self._product_id = product_id
        self._name = name
        self._price = price
        self._stock = stock
        self._capacity = capacity
        self._category = category

    def get_id(self) -> str:
        return self._product_id

    def get_name(self) -> str:
        return self._name

    def get_price(self) -> int:
        return self._price

    def get_stock(self) -> int:
        return self._stock

    def get_capacity(self) -> int:
        return self._capacity

    def get_category(self) -> ProductCategory:
        return self._category

    def is_available(self) -> bool:
        return self._stock > 0

    def __repr__(self) -> str:
        return f"Product({self._product_id}, {self._name}, {self._price}, Qty: {self._stock}/{self._capacity})"


@dataclass(frozen=True)
class ProductSnapshot:
    """Read-only copy of a product at a point in time"""
    product_id: str
    name: str
    price: int
    stock: int
    capacity: int
    category: ProductCategory


@dataclass(frozen=True)
class SelectionConfirmed:
    product_id: str
    product_name: str
    price: int
    balance: int


@dataclass(frozen=True)
class DispenseReceipt:
    product_id: str
    product_name: str
    price: int
    change_returned: int


@dataclass(frozen=True)
class TransactionLogEntry:
    """One audit record: which command ran and where it left the machine"""
    sequence: int
    timestamp: datetime
    command: str
    resulting_state: MachineState
    detail: str

    def __repr__(self) -> str:
        return f"TransactionLogEntry(#{self.sequence}, {self.command}, {self.resulting_state.value})"


@dataclass(frozen=True)
class MachineStatus:
    state: MachineState
    balance: int
    selection: Optional[str]
    inventory: Dict[str, ProductSnapshot]


# ==================== Inventory ====================

class Inventory:
    """
    Products keyed by id, with price and stock.

    Inventory has no lock of its own. It is owned by a single VendingMachine
    and only mutated while that machine holds its lock.
    """

    def __init__(self, products: Optional[List[Product]] = None):
        self._products: Dict[str, Product] = {}
        # Stock each product had when added, restored if the addition is rolled back
        self._stock_on_arrival: Dict[str, int] = {}
        for product in products or []:
            self.add_product(product)

    def add_product(self, product: Product) -> None:
        """Register a new product"""
        if product.get_id() in self._products:
            raise ValueError(f"Product {product.get_id()} already exists")
        self._products[product.get_id()] = product
        self._stock_on_arrival[product.get_id()] = product.get_stock()

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def products(self) -> List[Product]:
        return list(self._products.values())

    def is_available(self, product_id: str) -> bool:
        product = self._products.get(product_id)
        return product is not None and product.is_available()

    def decrement(self, product_id: str) -> Product:
        """Remove one unit of a product. Performs no payment checks."""
        product = self._products.get(product_id)
        if product is None:
            raise UnknownProductError(product_id)
        if product._stock == 0:
            raise OutOfStockError(product_id)
        product._stock -= 1
        return product

    def restock(self, product_id: str, quantity: int) -> int:
        """Add up to ``quantity`` units, capped at slot capacity. Returns units added."""
        if not _is_whole_number(quantity) or quantity < 0:
            raise InvalidQuantityError(quantity)
        product = self._products.get(product_id)
        if product is None:
            raise UnknownProductError(product_id)

        added = min(quantity, product._capacity - product._stock)
        product._stock += added
        return added

    def restock_all(self) -> int:
        """Fill every slot to capacity. Returns total units added."""
        added = 0
        for product in self._products.values():
            added += product._capacity - product._stock
            product._stock = product._capacity
        return added

    def snapshot(self) -> Dict[str, ProductSnapshot]:
        return {
            product_id: ProductSnapshot(
                product_id=product_id,
                name=product.get_name(),
                price=product.get_price(),
                stock=product.get_stock(),
                capacity=product.get_capacity(),
                category=product.get_category(),
            )
            for product_id, product in self._products.items()
        }

    def restore(self, snapshot: Dict[str, ProductSnapshot]) -> None:
        """Put stock counts back to a snapshot, dropping products added since"""
        for product_id in list(self._products):
            if product_id not in snapshot:
                removed = self._products.pop(product_id)
                removed._stock = self._stock_on_arrival.pop(product_id)
        for product_id, saved in snapshot.items():
            self._products[product_id]._stock = saved.stock

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._products

    def __len__(self) -> int:
        return len(self._products)


# ==================== Transaction Log ====================

class TransactionLog:
    """Append-only audit trail. Entries are never removed or changed."""

    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries < 0:
            raise ValueError("max_entries must be non-negative")
        self._entries: List[TransactionLogEntry] = []
        self._max_entries = max_entries

    def append(self, entry: TransactionLogEntry) -> None:
        if self._max_entries is not None and len(self._entries) >= self._max_entries:
            raise LogStorageError(f"Transaction log is full ({self._max_entries} entries)")
        self._entries.append(entry)

    def query_recent(self, n: int) -> List[TransactionLogEntry]:
        """Last ``n`` entries, oldest first"""
        if n <= 0:
            return []
        return self._entries[-n:]

    def __len__(self) -> int:
        return len(self._entries)



# ==================== State Pattern: Machine States ====================

class MachineStateHandler(ABC):
    """
    Abstract state handler.

    Every command is rejected unless the concrete state overrides it, so a
    command missing from a state can never change balance or inventory.
    """

    @property
    @abstractmethod
    def state(self) -> MachineState:
        """The state this handler implements"""
        pass

    def insert_coin(self, machine: 'VendingMachine', amount: int) -> int:
        raise self._reject("insert_coin")

    def select_product(self, machine: 'VendingMachine', product_id: str) -> SelectionConfirmed:
        raise self._reject("select_product")

    def dispense(self, machine: 'VendingMachine') -> DispenseReceipt:
        raise self._reject("dispense")

    def refund(self, machine: 'VendingMachine') -> int:
        raise self._reject("refund")

    def restock(self, machine: 'VendingMachine',
                quantities: Optional[Mapping[Union[str, Product], int]]) -> None:
        raise self._reject("restock")

    def shutdown(self, machine: 'VendingMachine') -> None:
        raise self._reject("shutdown")

    def enter_maintenance(self, machine: 'VendingMachine') -> None:
        raise self._reject("enter_maintenance")

    def _reject(self, command: str, reason: Optional[str] = None) -> VendingMachineError:
        return InvalidCommandForStateError(command, self.state, reason)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class _AcceptingMoneyState(MachineStateHandler):
    """Shared behaviour of the two states that hold a positive balance"""

    def insert_coin(self, machine: 'VendingMachine', amount: int) -> int:
        machine.validate_coin(amount)
        balance = machine.add_to_balance(amount)
        machine.record("insert_coin", f"Inserted {amount}, balance {balance}")
        return balance

    def select_product(self, machine: 'VendingMachine', product_id: str) -> SelectionConfirmed:
        product = machine.validate_selection(product_id)
        machine.set_selection(product_id)
        machine.set_state(PRODUCT_SELECTED)
        machine.record("select_product", f"Selected {product.get_name()} at {product.get_price()}")
        return SelectionConfirmed(
            product_id=product_id,
            product_name=product.get_name(),
            price=product.get_price(),
            balance=machine.get_balance(),
        )

    def refund(self, machine: 'VendingMachine') -> int:
        amount = machine.clear_transaction()
        machine.set_state(READY)
        machine.record("refund", f"Returned {amount}")
        return amount

    def restock(self, machine: 'VendingMachine',
                quantities: Optional[Mapping[Union[str, Product], int]]) -> None:
        raise self._reject("restock", f"balance {machine.get_balance()} outstanding")

    def shutdown(self, machine: 'VendingMachine') -> None:
        raise self._reject("shutdown", f"balance {machine.get_balance()} outstanding")

    def enter_maintenance(self, machine: 'VendingMachine') -> None:
        raise self._reject("enter_maintenance", f"balance {machine.get_balance()} outstanding")


class ReadyState(MachineStateHandler):
    """Idle, zero balance, waiting for a coin"""

    state = MachineState.READY

    def insert_coin(self, machine: 'VendingMachine', amount: int) -> int:
        machine.validate_coin(amount)
        balance = machine.add_to_balance(amount)
        machine.set_state(COIN_INSERTED)
        machine.record("insert_coin", f"Inserted {amount}, balance {balance}")
        return balance

    def refund(self, machine: 'VendingMachine') -> int:
        logger.info("[%s] refund: nothing to return", machine.get_machine_id())
        return 0

    def restock(self, machine: 'VendingMachine',
                quantities: Optional[Mapping[Union[str, Product], int]]) -> None:
        machine.validate_restock(quantities)
        machine.set_state(MAINTENANCE)
        added = machine.apply_restock(quantities)
        machine.set_state(READY)
        machine.record("restock", f"Restocked {added} units")

    def shutdown(self, machine: 'VendingMachine') -> None:
        machine.set_state(OUT_OF_ORDER)
        machine.record("shutdown", "Machine taken out of order")

    def enter_maintenance(self, machine: 'VendingMachine') -> None:
        machine.set_state(MAINTENANCE)
        machine.record("enter_maintenance", "Maintenance started")


class CoinInsertedState(_AcceptingMoneyState):
    state = MachineState.COIN_INSERTED


class ProductSelectedState(_AcceptingMoneyState):
    """Funds cover the selected product; waiting for dispense"""

    state = MachineState.PRODUCT_SELECTED

    def dispense(self, machine: 'VendingMachine') -> DispenseReceipt:
        product_id = machine.get_selection()
        inventory = machine.get_inventory()

        machine.set_state(DISPENSING)

        # Stock or funds may have changed since selection; nothing is touched on failure.
        if not inventory.is_available(product_id):
            machine.set_state(self)
            raise OutOfStockError(product_id)
        product = inventory.get(product_id)
        balance = machine.get_balance()
        if balance < product.get_price():
            machine.set_state(self)
            raise InsufficientFundsError(product_id, product.get_price(), balance)

        inventory.decrement(product_id)
        change = balance - product.get_price()
        machine.clear_transaction()

        machine.record(
            "dispense",
            f"Dispensed {product.get_name()}, change {change}",
            resulting_state=MachineState.READY,
        )
        machine.set_state(READY)

        return DispenseReceipt(
            product_id=product_id,
            product_name=product.get_name(),
            price=product.get_price(),
            change_returned=change,
        )


class DispensingState(MachineStateHandler):
    """Transient: the dispense sequence is running"""

    state = MachineState.DISPENSING

    def insert_coin(self, machine: 'VendingMachine', amount: int) -> int:
        raise BusyError("insert_coin")

    def select_product(self, machine: 'VendingMachine', product_id: str) -> SelectionConfirmed:
        raise BusyError("select_product")

    def dispense(self, machine: 'VendingMachine') -> DispenseReceipt:
        raise BusyError("dispense", "already dispensing")

    def refund(self, machine: 'VendingMachine') -> int:
        raise BusyError("refund")

    def restock(self, machine: 'VendingMachine',
                quantities: Optional[Mapping[Union[str, Product], int]]) -> None:
        raise BusyError("restock")

    def shutdown(self, machine: 'VendingMachine') -> None:
        raise BusyError("shutdown")

    def enter_maintenance(self, machine: 'VendingMachine') -> None:
        raise BusyError("enter_maintenance")


class MaintenanceState(MachineStateHandler):
    """Operator service mode"""

    state = MachineState.MAINTENANCE

    def restock(self, machine: 'VendingMachine',
                quantities: Optional[Mapping[Union[str, Product], int]]) -> None:
        machine.validate_restock(quantities)
        added = machine.apply_restock(quantities)
        machine.set_state(READY)
        machine.record("restock", f"Restocked {added} units, maintenance complete")

    def shutdown(self, machine: 'VendingMachine') -> None:
        machine.set_state(OUT_OF_ORDER)
        machine.record("shutdown", "Machine taken out of order")

    def enter_maintenance(self, machine: 'VendingMachine') -> None:
        logger.info("[%s] enter_maintenance: already in maintenance", machine.get_machine_id())


class OutOfOrderState(MachineStateHandler):
    state = MachineState.OUT_OF_ORDER

    def restock(self, machine: 'VendingMachine',
                quantities: Optional[Mapping[Union[str, Product], int]]) -> None:
        machine.validate_restock(quantities)
        machine.set_state(MAINTENANCE)
        added = machine.apply_restock(quantities)
        machine.set_state(READY)
        machine.record("restock", f"Restocked {added} units, machine back in service")

    def shutdown(self, machine: 'VendingMachine') -> None:
        logger.info("[%s] shutdown: already out of order", machine.get_machine_id())

    def enter_maintenance(self, machine: 'VendingMachine') -> None:
        machine.set_state(MAINTENANCE)
        machine.record("enter_maintenance", "Maintenance started")


# Handlers are stateless, one shared instance per state
READY = ReadyState()
COIN_INSERTED = CoinInsertedState()
PRODUCT_SELECTED = ProductSelectedState()
DISPENSING = DispensingState()
MAINTENANCE = MaintenanceState()
OUT_OF_ORDER = OutOfOrderState()


# ==================== Main Vending Machine Class ====================

@dataclass(frozen=True)
class _Checkpoint:
    handler: MachineStateHandler
    balance: int
    selection: Optional[str]
    inventory: Dict[str, ProductSnapshot]


class VendingMachine:
    """
    Vending machine controller.

    All commands run one at a time behind a single re-entrant lock. Recoverable
    failures raise a VendingMachineError and leave state, balance, selection and
    inventory unchanged. A LogStorageError or MemoryError restores the
    pre-command state and propagates.

    Args:
        machine_id: Identifier used in logs and reports.
        inventory: Products to sell. An empty inventory is created if omitted.
        accepted_coins: Coin values the machine takes. Any positive integer
            is accepted when None.
        log_capacity: Maximum number of audit entries, unbounded when None.
        clock: Timestamp source for log entries.
    """

    def __init__(self, machine_id: str, inventory: Optional[Inventory] = None,
                 accepted_coins: Optional[Set[int]] = None,
                 log_capacity: Optional[int] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self._machine_id = machine_id
        self._inventory = inventory if inventory is not None else Inventory()
        self._accepted_coins = frozenset(accepted_coins) if accepted_coins is not None else None
        self._log = TransactionLog(log_capacity)
        self._clock = clock
        self._lock = RLock()
        self._sequence = 0

        self._state_handler: MachineStateHandler = READY
        self._balance = 0
        self._selection: Optional[str] = None

    # Accessors used by the state handlers
    def get_machine_id(self) -> str:
        return self._machine_id

    def get_inventory(self) -> Inventory:
        return self._inventory

    def get_state(self) -> MachineState:
        with self._lock:
            return self._state_handler.state

    def set_state(self, handler: MachineStateHandler) -> None:
        self._state_handler = handler

    def get_balance(self) -> int:
        with self._lock:
            return self._balance

    def add_to_balance(self, amount: int) -> int:
        self._balance += amount
        return self._balance

    def get_selection(self) -> Optional[str]:
        with self._lock:
            return self._selection

    def set_selection(self, product_id: str) -> None:
        self._selection = product_id

    def clear_transaction(self) -> int:
        """Zero the balance and drop the selection. Returns the old balance."""
        amount = self._balance
        self._balance = 0
        self._selection = None
        return amount

    def validate_coin(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidCoinError(amount)
        if self._accepted_coins is not None and amount not in self._accepted_coins:
            raise InvalidCoinError(amount)

    def validate_selection(self, product_id: str) -> Product:
        product = self._inventory.get(product_id)
        if product is None:
            raise UnknownProductError(product_id)
        if not product.is_available():
            raise OutOfStockError(product_id)
        if self._balance < product.get_price():
            raise InsufficientFundsError(product_id, product.get_price(), self._balance)
        return product

    def validate_restock(self, quantities: Optional[Mapping[Union[str, Product], int]]) -> None:
        """Check a restock map completely before any stock is touched"""
        if quantities is None:
            return
        for key, quantity in quantities.items():
            if not _is_whole_number(quantity) or quantity < 0:
                raise InvalidQuantityError(quantity)
            if isinstance(key, Product):
                continue
            if key not in self._inventory:
                raise UnknownProductError(key)

    def apply_restock(self, quantities: Optional[Mapping[Union[str, Product], int]]) -> int:
        if quantities is None:
            return self._inventory.restock_all()

        added = 0
        for key, quantity in quantities.items():
            if isinstance(key, Product):
                if key.get_id() not in self._inventory:
                    self._inventory.add_product(key)
                key = key.get_id()
            added += self._inventory.restock(key, quantity)
        return added

    def record(self, command: str, detail: str,
               resulting_state: Optional[MachineState] = None) -> TransactionLogEntry:
        """Append an audit entry for an accepted command"""
        state = resulting_state or self._state_handler.state
        entry = TransactionLogEntry(
            sequence=self._sequence + 1,
            timestamp=self._clock(),
            command=command,
            resulting_state=state,
            detail=detail,
        )
        self._log.append(entry)
        self._sequence += 1
        logger.info("[%s] %s -> %s: %s", self._machine_id, command, state.value, detail)
        return entry

    def _checkpoint(self) -> _Checkpoint:
        return _Checkpoint(
            handler=self._state_handler,
            balance=self._balance,
            selection=self._selection,
            inventory=self._inventory.snapshot(),
        )

    def _rollback(self, checkpoint: _Checkpoint) -> None:
        self._state_handler = checkpoint.handler
        self._balance = checkpoint.balance
        self._selection = checkpoint.selection
        self._inventory.restore(checkpoint.inventory)

    def _execute(self, command: str, action: Callable[[MachineStateHandler], T]) -> T:
        with self._lock:
            checkpoint = self._checkpoint()
            try:
                return action(self._state_handler)
            except VendingMachineError as e:
                logger.warning("[%s] %s rejected: %s", self._machine_id, command, e.detail)
                raise
            except (LogStorageError, MemoryError):
                self._rollback(checkpoint)
                logger.exception("[%s] %s aborted, machine restored to %s",
                                 self._machine_id, command, checkpoint.handler.state.value)
                raise

    # Public API methods
    def insert_coin(self, amount: int) -> int:
        """Insert a coin. Returns the new balance."""
        return self._execute("insert_coin", lambda handler: handler.insert_coin(self, amount))

    def select_product(self, product_id: str) -> SelectionConfirmed:
        return self._execute("select_product", lambda handler: handler.select_product(self, product_id))

    def dispense(self) -> DispenseReceipt:
        """Release the selected product and report the change owed"""
        return self._execute("dispense", lambda handler: handler.dispense(self))

    def refund(self) -> int:
        """Cancel the transaction. Returns the amount handed back."""
        return self._execute("refund", lambda handler: handler.refund(self))

    def restock(self, quantities: Optional[Mapping[Union[str, Product], int]] = None) -> None:
        """
        Restock and return the machine to READY.

        Without ``quantities`` every slot is filled to capacity. Otherwise
        each key is a product id, or a Product to add to the machine, mapped
        to the number of units to load.
        """
        self._execute("restock", lambda handler: handler.restock(self, quantities))

    def shutdown(self) -> None:
        self._execute("shutdown", lambda handler: handler.shutdown(self))

    def enter_maintenance(self) -> None:
        self._execute("enter_maintenance", lambda handler: handler.enter_maintenance(self))

    # Queries
    def status(self) -> MachineStatus:
        with self._lock:
            return MachineStatus(
                state=self._state_handler.state,
                balance=self._balance,
                selection=self._selection,
                inventory=self._inventory.snapshot(),
            )

    def recent_transactions(self, n: int) -> List[TransactionLogEntry]:
        with self._lock:
            return self._log.query_recent(n)

    def display_inventory(self) -> None:
        """Display current inventory"""
        status = self.status()
        print(f"\n{'='*80}")
        print(f"VENDING MACHINE INVENTORY - {self._machine_id} [{status.state.value}]")
        print(f"{'='*80}")

        if not status.inventory:
            print("No products loaded")
        for item in status.inventory.values():
            mark = "✓" if item.stock > 0 else "✗"
            print(f"{mark} {item.product_id}: {item.name} - {item.price} "
                  f"({item.stock}/{item.capacity} left)")

        print(f"\nBalance: {status.balance}")
        print(f"{'='*80}\n")

    def display_transactions(self, n: int = 20) -> None:
        """Display the most recent transaction log entries"""
        print(f"\n{'='*80}")
        print(f"TRANSACTION LOG - {self._machine_id}")
        print(f"{'='*80}")

        entries = self.recent_transactions(n)
        if not entries:
            print("No transactions yet")
        for entry in entries:
            print(f"#{entry.sequence:04d} {entry.timestamp.strftime('%Y-%m-%d %H:%M:%S')} - "
                  f"{entry.command} -> {entry.resulting_state.value} - {entry.detail}")

        print(f"{'='*80}\n")


# ==================== Demo Usage ====================

def _attempt(label: str, command: Callable[[], object]) -> None:
    try:
        result = command()
        print(f"[Machine] {label}: {result}")
    except VendingMachineError as e:
        print(f"[Machine] {label} failed [{e.code}]: {e.detail}")


def main():
    """Demo the vending machine"""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("=== Vending Machine Controller Demo ===\n")

    inventory = Inventory([
        Product("cola", "Cola", 1000, stock=5, category=ProductCategory.BEVERAGE),
        Product("coffee", "Coffee", 1500, stock=5, category=ProductCategory.BEVERAGE),
        Product("chips", "Potato Chips", 700, stock=1, category=ProductCategory.CHIPS),
        Product("gum", "Gum", 300, stock=0, category=ProductCategory.CANDY),
    ])
    machine = VendingMachine("VM-001", inventory, accepted_coins={100, 500, 1000, 2000})
    machine.display_inventory()

    print("\n--- Exact payment ---")
    _attempt("insert 500", lambda: machine.insert_coin(500))
    _attempt("insert 500", lambda: machine.insert_coin(500))
    _attempt("select cola", lambda: machine.select_product("cola"))
    _attempt("dispense", machine.dispense)

    print("\n--- Change of mind ---")
    _attempt("insert 2000", lambda: machine.insert_coin(2000))
    _attempt("select coffee", lambda: machine.select_product("coffee"))
    _attempt("refund", machine.refund)

    print("\n--- Insufficient funds ---")
    _attempt("insert 500", lambda: machine.insert_coin(500))
    _attempt("insert 100", lambda: machine.insert_coin(100))
    _attempt("select coffee", lambda: machine.select_product("coffee"))
    _attempt("restock mid-transaction", machine.restock)
    _attempt("refund", machine.refund)

    print("\n--- Out of stock ---")
    _attempt("insert 1000", lambda: machine.insert_coin(1000))
    _attempt("select gum", lambda: machine.select_product("gum"))
    _attempt("insert 7", lambda: machine.insert_coin(7))
    _attempt("refund", machine.refund)

    print("\n--- Out of order and back ---")
    _attempt("shutdown", machine.shutdown)
    _attempt("insert 100", lambda: machine.insert_coin(100))
    _attempt("restock", machine.restock)

    machine.display_inventory()
    machine.display_transactions()

    print("\n=== Demo Complete ===")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nDemo interrupted by user")


# Key Design Decisions:
#
# State handlers hold no data. Balance, selection and the log live on the
# VendingMachine, so swapping handlers is a single assignment and rollback
# only has to restore four fields.
#
# The base handler rejects everything. A state only gains a command by
# overriding it, which keeps the transition table in one place per state:
#
#   READY            insert_coin, refund (no-op), restock, shutdown, enter_maintenance
#   COIN_INSERTED    insert_coin, select_product, refund
#   PRODUCT_SELECTED insert_coin, select_product, dispense, refund
#   DISPENSING       nothing (BusyError)
#   MAINTENANCE      restock, shutdown, enter_maintenance (no-op)
#   OUT_OF_ORDER     restock, shutdown (no-op), enter_maintenance
#
# Money is an int in the smallest currency unit, so change is exact.
