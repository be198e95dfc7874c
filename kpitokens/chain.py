"""
In-process chain runtime.

Hosts every contract by address and executes public operations as
serialized, atomic transactions:

- `transaction()` snapshots all contract state, deployments and nonces,
  and restores them if the wrapped operation raises
- events are buffered per transaction and only reach the log and the
  observers once the outermost transaction commits
- nested transactions (re-entrant calls) roll back independently
"""

import copy
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from kpitokens.core.addresses import ZERO_ADDRESS, contract_address, to_address
from kpitokens.core.contracts import Event, Receipt
from kpitokens.core.errors import AddressInUse, UnknownContract

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[str, str, int], None]


class Contract:
    """
    Base class for state hosted on a Chain.

    Contract state lives in instance attributes. Other contracts are
    referenced by address and resolved through the chain on use.
    """

    chain: Optional["Chain"] = None
    address: str = ZERO_ADDRESS

    def _emit(self, name: str, **args: Any) -> None:
        self.chain.emit(self.address, name, args)

    def _contract(self, address: str, expected_type=None):
        return self.chain.contract_at(address, expected_type)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(
            {key: value for key, value in vars(self).items() if key != "chain"}
        )

    def restore(self, state: Dict[str, Any]) -> None:
        chain = self.chain
        self.__dict__.clear()
        self.__dict__.update(state)
        self.chain = chain


class Chain:
    def __init__(self, timestamp: Optional[int] = None):
        self.timestamp = int(time.time()) if timestamp is None else int(timestamp)
        self.events: List[Event] = []

        self._contracts: Dict[str, Contract] = {}
        self._nonces: Dict[str, int] = {}
        self._receive_hooks: Dict[str, ReceiveHook] = {}
        self._observers: List[Any] = []
        self._pending: List[List[Event]] = []

    # -------------------------------------------------
    # CLOCK
    # -------------------------------------------------
    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Cannot move the chain clock backwards")
        self.timestamp += int(seconds)
        return self.timestamp

    def advance_to(self, timestamp: int) -> int:
        if timestamp < self.timestamp:
            raise ValueError(
                f"Cannot move the chain clock backwards ({timestamp} < {self.timestamp})"
            )
        self.timestamp = int(timestamp)
        return self.timestamp

    # -------------------------------------------------
    # DEPLOYMENT
    # -------------------------------------------------
    def deploy(self, contract: Contract, deployer: str) -> Contract:
        deployer = to_address(deployer)
        nonce = self._nonces.get(deployer, 0)
        self._nonces[deployer] = nonce + 1
        return self.deploy_at(contract_address(deployer, nonce), contract)

    def deploy_at(self, address: str, contract: Contract) -> Contract:
        address = to_address(address)
        if address in self._contracts:
            raise AddressInUse(f"A contract already lives at {address}")

        contract.chain = self
        contract.address = address
        self._contracts[address] = contract

        logger.debug("Deployed %s at %s", type(contract).__name__, address)
        return contract

    def contract_at(self, address: str, expected_type=None):
        contract = self._contracts.get(to_address(address))
        if contract is None:
            raise UnknownContract(f"No contract at {address}")
        if expected_type is not None and not isinstance(contract, expected_type):
            raise UnknownContract(
                f"Contract at {address} is a {type(contract).__name__}, "
                f"expected {expected_type.__name__}"
            )
        return contract

    def is_contract(self, address: str) -> bool:
        return to_address(address) in self._contracts

    # -------------------------------------------------
    # EXTERNAL ACCOUNTS
    # -------------------------------------------------
    def set_receive_hook(self, address: str, hook: Optional[ReceiveHook]) -> None:
        """
        Register a callback run whenever `address` receives tokens.
        The hook gets (token_address, sender, amount) and may call back
        into any contract.
        """
        address = to_address(address)
        if hook is None:
            self._receive_hooks.pop(address, None)
        else:
            self._receive_hooks[address] = hook

    def notify_receive(self, token: str, sender: str, recipient: str, amount: int) -> None:
        hook = self._receive_hooks.get(recipient)
        if hook is not None:
            hook(token, sender, amount)

    # -------------------------------------------------
    # EVENTS
    # -------------------------------------------------
    def register_observer(self, observer) -> None:
        self._observers.append(observer)

    def emit(self, emitter: str, name: str, args: Dict[str, Any]) -> None:
        event = Event(name=name, emitter=emitter, args=dict(args), timestamp=self.timestamp)
        if self._pending:
            self._pending[-1].append(event)
        else:
            self._commit([event])

    def _commit(self, events: List[Event]) -> None:
        self.events.extend(events)
        for event in events:
            for observer in self._observers:
                try:
                    observer.record(event)
                except Exception:
                    # state is already committed; an observer cannot undo it
                    logger.exception(
                        "Observer %s failed on %s", type(observer).__name__, event.name
                    )

    # -------------------------------------------------
    # TRANSACTIONS
    # -------------------------------------------------
    def _snapshot(self) -> Dict[str, Any]:
        return {
            "contracts": dict(self._contracts),
            "states": {
                address: contract.snapshot()
                for address, contract in self._contracts.items()
            },
            "nonces": dict(self._nonces),
        }

    def _restore(self, saved: Dict[str, Any]) -> None:
        self._contracts = saved["contracts"]
        self._nonces = saved["nonces"]
        for address, state in saved["states"].items():
            self._contracts[address].restore(state)

    @contextmanager
    def transaction(self):
        saved = self._snapshot()
        receipt = Receipt()
        self._pending.append([])

        try:
            yield receipt
        except Exception:
            self._pending.pop()
            self._restore(saved)
            logger.debug("Transaction reverted, state restored")
            raise

        events = self._pending.pop()
        receipt.events.extend(events)

        if self._pending:
            self._pending[-1].extend(events)
        else:
            self._commit(events)
